# gestion/pages/11_Segments.py
from gestion.core.logging import configure_logging

configure_logging()

from gestion.ui.resource_page import render_resource_page

render_resource_page("segments")
