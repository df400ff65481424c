"""Generic utilities and helpers.

This is a collection of generic utilities and helpers
that can be helpful in the other parts of the codebase
and are not specifically bound to any component.
"""

from . import logging, tabulate

__all__ = ("logging", "tabulate")
