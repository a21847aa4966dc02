"""
What the callers want to achieve: the convergence predicates and the recipes.
"""
