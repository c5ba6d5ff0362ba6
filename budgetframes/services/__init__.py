"""
Services package.

Data-access helpers grouped by concern. Every function that touches the
database takes the open transaction (`tx`) and runs inside it.
"""
