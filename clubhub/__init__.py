"""ClubHub - membership lifecycle and level progression for a university club"""

__version__ = "1.0.0"
