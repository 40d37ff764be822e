"""
API Layer

RESPONSIBILITY: Read-only HTTP access to one loaded entity graph
ALLOWED INPUTS: Query parameters and tool parameter objects
OUTPUTS: JSON views (wire format entities, network views, tool results)

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate the registry
- Hold business logic (delegate to the engine and toolkit)
"""
