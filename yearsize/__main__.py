from yearsize.cli import app


app(prog_name="yearsize")
