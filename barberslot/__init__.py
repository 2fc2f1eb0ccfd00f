"""
barberslot - appointment availability and agenda drag-and-drop scheduling
for barbershops.
"""

__version__ = "0.1.0"
