"""ZAR shedding card game engine and room server."""
