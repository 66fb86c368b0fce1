"""Analysis package: tabular reshaping, regression and plots."""
