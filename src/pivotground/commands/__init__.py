"""Shell commands exposing PivotGround functionalities.

Reshape
=======

``pivotground-reshape`` reshapes CSV files between long and wide format::

    pivotground-reshape widen surveys_mean.csv --id plot_id --key genus --value mean_weight -o wide.csv
    pivotground-reshape lengthen wide.csv --id plot_id --key-name genus --value-name mean_weight

When no output file is provided, the result is printed as a text table.
"""
