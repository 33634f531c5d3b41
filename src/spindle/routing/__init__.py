"""Routing — route template compiler and ordered route table.

Routes are registered during setup and matched first-match-wins, in
registration order, once the table is sealed.
"""
