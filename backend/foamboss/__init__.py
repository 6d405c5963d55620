"""FoamBoss estimator: spray-foam job pricing engine."""

__version__ = "1.0.0"
