"""Reflex configuration for the list view demo app."""

import reflex as rx

config = rx.Config(
    app_name="list_view_demo",
    plugins=[rx.plugins.SitemapPlugin()],
)
