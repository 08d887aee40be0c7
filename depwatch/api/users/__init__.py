"""User profile, favourites, comments and notifications endpoints."""
