"""
Card studio: scenario-driven email card design and PNG export.

Modules:
- scenarios: scenario catalog with default copy
- palette: accent colours and background treatments
- state: composition state value and field edits
- session: interactive session owning the composition
- render: pure projection of state + background onto a card description
- rasterize: Pillow backend painting a description into a bitmap
- export: Idle/Exporting pipeline and download trigger
- core: studio wiring (preview surface, session, pipeline)
- config: settings loaded from the environment
"""
