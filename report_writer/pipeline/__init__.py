"""Generation pipeline: template rendering, outline/report generators, stream relay."""
