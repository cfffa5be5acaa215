"""Frank: a browser-based karaoke backend for UltraStar song libraries."""
