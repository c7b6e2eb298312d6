"""Internal execution graph."""
