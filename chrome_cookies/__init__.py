"""chrome-cookies: read cookies from a local Chrome profile through a headless browser."""
