"""Dataframe library built on top of pivotground.

A dataframe library is a tool designed to handle and manipulate structured data,
typically in the form of tables (i.e., rows and columns).
It allows users to load data from various sources (like CSV files),
clean it, summarise it, reshape it and export it again.

A typical session of a lesson on reshaping looks like::

    surveys = Dataframe.open_csv("surveys.csv")
    surveys.drop_missing(["weight"]) \\
      .aggregate(["plot_id", "genus"], {"mean_weight": MeanAggregation("weight")}) \\
      .widen(["plot_id"], "genus", "mean_weight") \\
      .to_csv("surveys_wide.csv")

This module shows how to implement a custom dataframe library,
using the pivotground compute capabilities as its foundation.
"""

from ..compute import col, lit
from .dataframe import Dataframe

__all__ = ("Dataframe", "col", "lit")
