# gestion/pages/12_Bug_Reports.py
from gestion.core.logging import configure_logging

configure_logging()

from gestion.ui.resource_page import render_resource_page

render_resource_page("bugs")
