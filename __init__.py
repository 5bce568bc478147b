"""Finance overview package.

Derived state for a personal finance screen: health score animation,
consolidated assets, the category donut, the month comparison chart and
its period ruler. See ``app.py`` for the Streamlit dashboard and
``api_server.py`` for the JSON tools.
"""
