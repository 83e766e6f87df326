"""
Lineup Lab - doubles lineup candidate pairing engine

Builds the feature bundle behind lineup recommendations for a doubles
league: which players are available, and which partner pairs have played
together before the match being planned.

Main components:
- features: Catalog builder, candidate generator, strict/relaxed fallback, bundle
- players: Team rosters and suggested available players
- db: SQLAlchemy models and sessions for match history
- web: FastAPI JSON API
"""

__version__ = "1.0.0"
