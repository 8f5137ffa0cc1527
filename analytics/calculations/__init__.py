"""
Calculation modules - pure functions, no I/O and no shared state.
"""
