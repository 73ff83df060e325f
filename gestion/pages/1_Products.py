# gestion/pages/1_Products.py
from gestion.core.logging import configure_logging

configure_logging()

from gestion.ui.product_import import render_product_import
from gestion.ui.resource_page import render_resource_page

render_resource_page("products", extras=render_product_import)
