"""
Fleet Operations project.

Django project wiring for the fleet operational core.
"""

__version__ = '0.1.0'
