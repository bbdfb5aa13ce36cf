"""edgewatch - Manifold market watcher that bets when an oracle finds an edge."""

__version__ = "0.1.0"
