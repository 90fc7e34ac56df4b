"""Todo — a storage-backed JSON API.

Demonstrates async handlers, SQLite storage, JSON body parsing, and
access logging. The tests also drive it over a channel client, the way
a browser tab would.

Run:
    wren call app:app POST /todos --body '{"title": "Buy milk"}'
"""

import uuid

from wren import App, AppConfig
from wren.middleware import AccessLogMiddleware, JSONBodyMiddleware

app = App(AppConfig(storage="sqlite", cors=False))
app.add_middleware(AccessLogMiddleware())
app.add_middleware(JSONBodyMiddleware())

COLLECTION = "todos"


@app.get("/todos")
async def list_todos(req, res):
    todos = await app.storage.get_all(COLLECTION)
    if req.query.get("done") is not None:
        wanted = req.query["done"] == "true"
        todos = [todo for todo in todos if todo["done"] is wanted]
    res.json(todos)


@app.post("/todos")
async def create_todo(req, res):
    body = req.body if isinstance(req.body, dict) else {}
    title = body.get("title")
    if not title:
        res.set_status(400).json({"error": "title is required"})
        return
    todo = {"id": uuid.uuid4().hex[:8], "title": title, "done": False}
    await app.storage.set(COLLECTION, todo["id"], todo)
    res.set_status(201).json(todo)


@app.get("/todos/:id")
async def get_todo(req, res):
    todo = await app.storage.get(COLLECTION, req.params["id"])
    if todo is None:
        res.set_status(404).json({"error": "Todo not found"})
        return
    res.json(todo)


@app.patch("/todos/:id")
async def update_todo(req, res):
    todo = await app.storage.get(COLLECTION, req.params["id"])
    if todo is None:
        res.set_status(404).json({"error": "Todo not found"})
        return
    changes = req.body if isinstance(req.body, dict) else {}
    todo.update({k: v for k, v in changes.items() if k in ("title", "done")})
    await app.storage.set(COLLECTION, todo["id"], todo)
    res.json(todo)


@app.delete("/todos/:id")
async def delete_todo(req, res):
    await app.storage.delete(COLLECTION, req.params["id"])
    res.set_status(204)
