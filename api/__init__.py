"""REST API for PlotTwist."""
