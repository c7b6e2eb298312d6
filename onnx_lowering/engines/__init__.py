"""Engines that drive lowering over a graph."""
