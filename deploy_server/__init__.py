"""
Deploy Server module.

HTTP boundary for submitting repositories to the deploy workflow.
"""
