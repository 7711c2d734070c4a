"""Terminal battleship for two players, with a relay server for pairing."""

__version__ = "0.1.0"