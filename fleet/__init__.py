"""
Fleet operational core.

Vehicle and trip lifecycle rules, scheduling restrictions and the
notifications derived from them.
"""
