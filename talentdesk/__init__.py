"""TalentDesk: candidate tracking backend and client."""

__version__ = "0.1.0"
