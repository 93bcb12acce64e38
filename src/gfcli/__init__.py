"""gfcli - search, download and install fonts from the Google Fonts catalog."""
