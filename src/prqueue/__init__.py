"""prqueue - track a pull-request attention queue across several GitHub queries."""

__version__ = "0.1.0"
