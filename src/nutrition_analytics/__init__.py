"""Nutrition analytics and goal projection engine."""
