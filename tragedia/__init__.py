"""Game state for a scripted dialogue adventure: save database, dialogues, menus, fades, NPCs, levels and the player."""

__version__ = "0.1.0"