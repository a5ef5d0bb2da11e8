from ctwizard.cli import app

app()
