"""VoiceDeck text-to-speech service."""
