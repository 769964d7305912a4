"""Analysis reports and graph/manifest comparisons."""
