"""Interpreter command construction and child-process execution."""
