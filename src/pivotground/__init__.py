"""PivotGround

A small data platform to learn how tabular data is reshaped.

Data can be laid out in *long* format, one row per observation
with a column naming the measured variable and one holding its value,
or in *wide* format, one row per observational unit and one column
per measured variable. Moving between the two is one of the most
common steps when cleaning data to be exported or plotted.

The platform is constituted by multiple components, each isolated within its own
package:

* The Compute Engine, in charge of loading, filtering, aggregating
  and reshaping the data. The reshaping itself is implemented by
  :func:`pivotground.compute.widen` and :func:`pivotground.compute.lengthen`.
* The Dataframe API, which provides an high level API for the compute engine.
* The ``pivotground-reshape`` command, to reshape CSV files from the shell.
"""

from . import compute

__all__ = ("compute",)
