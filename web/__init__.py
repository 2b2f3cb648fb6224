"""
Web application package for the chess app.

Provides a FastAPI-based REST API and a chessboard.js frontend for playing
in a browser, either two humans on one board or a human against the
computer opponent.
"""
