import dotenv
from shiny import App

from webfit.server import server
from webfit.ui import app_ui

dotenv.load_dotenv()

app = App(app_ui, server)
