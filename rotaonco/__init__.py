"""Django project package for the RotaOnco API."""
