"""Generation stages: segmentation, scripts and videos."""
