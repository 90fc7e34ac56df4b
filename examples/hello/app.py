"""Hello World — the simplest wren app.

Demonstrates routes, path parameters, JSON and text bodies, and status
and header chaining on the response builder.

Run:
    wren routes app:app
    wren call app:app GET /greet/alice
"""

from wren import App

app = App()


@app.get("/")
def index(req, res):
    res.text("Hello, World!")


@app.get("/greet/:name")
def greet(req, res):
    res.text(f"Hello, {req.params['name']}!")


@app.get("/api/status")
def status(req, res):
    res.json({"status": "ok", "version": "0.1.0"})


@app.get("/custom")
async def custom(req, res):
    res.set_status(201).set_header("X-Custom", "wren").text("Created")
