"""
Core - Framework infrastructure.

- config/      - Settings and factory functions
- interfaces/  - Protocols for DI
- connectors/  - Cache backends (Redis, Session, Memory) and the SQLite store
- cache/       - Cache-aside layer
- mapping/     - Data-mapping engine (schema, attributes, entities, persister)
- session.py   - Current visitor session
- errors.py    - Error hierarchy
"""
