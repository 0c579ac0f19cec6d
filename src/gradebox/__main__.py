from gradebox.cli import app

app()
