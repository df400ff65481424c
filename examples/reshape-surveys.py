"""Reshape the surveys data as done in the lesson.

Run ``generate_test_data.py`` first to create ``data/surveys.csv``.
"""
from pivotground.compute import CountAggregation, MeanAggregation
from pivotground.dataframe import Dataframe
from pivotground.utils.logging import configure_logging
from pivotground.utils.tabulate import tabulate

configure_logging("DEBUG")

surveys = Dataframe.open_csv("data/surveys.csv").drop_missing(["weight"])

# Mean weight of each genus in each plot, one column per genus.
surveys_wide = surveys \
  .aggregate(["plot_id", "genus"], {"mean_weight": MeanAggregation("weight")}) \
  .widen(["plot_id"], "genus", "mean_weight") \
  .collect()
print(tabulate(surveys_wide.to_arrow()))

# Back to one row per plot and genus, plots without a genus are kept as NA.
surveys_long = surveys_wide.lengthen(["plot_id"], "genus", "mean_weight")
print(tabulate(surveys_long.to_arrow()))

# Number of animals of each genus caught each year, zero when none was caught.
surveys \
  .aggregate(["year", "genus"], {"n": CountAggregation("weight")}) \
  .widen(["year"], "genus", "n", fill_value=0) \
  .to_csv("data/surveys_counts_wide.csv")
