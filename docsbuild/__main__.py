from docsbuild.cli import app

app()
