from rich.tree import Tree

STATUS_SYMBOLS = {
    "done": "[green]●[/green]",
    "pending": "[green dim]○[/green dim]",
    "running": "[cyan]○[/cyan]",
    "error": "[red]●[/red]",
    "skipped": "[yellow]○[/yellow]",
}


class StepTracker:
    """Track scaffolding stages and render them as a tree.
    Supports live auto-refresh via an attached refresh callback.
    """
    def __init__(self, title: str):
        self.title = title
        self.steps = []  # list of dicts: {key, label, status, detail}
        self._refresh_cb = None

    def attach_refresh(self, cb):
        self._refresh_cb = cb

    def add(self, key: str, label: str):
        if self.status_of(key) is None:
            self.steps.append({"key": key, "label": label, "status": "pending", "detail": ""})
            self._maybe_refresh()

    def start(self, key: str, detail: str = ""):
        self._update(key, "running", detail)

    def complete(self, key: str, detail: str = ""):
        self._update(key, "done", detail)

    def error(self, key: str, detail: str = ""):
        self._update(key, "error", detail)

    def skip(self, key: str, detail: str = ""):
        self._update(key, "skipped", detail)

    def status_of(self, key: str) -> str | None:
        for step in self.steps:
            if step["key"] == key:
                return step["status"]
        return None

    def _update(self, key: str, status: str, detail: str):
        for step in self.steps:
            if step["key"] == key:
                step["status"] = status
                if detail:
                    step["detail"] = detail
                break
        else:
            self.steps.append({"key": key, "label": key, "status": status, "detail": detail})
        self._maybe_refresh()

    def _maybe_refresh(self):
        if self._refresh_cb:
            self._refresh_cb()

    def render(self) -> Tree:
        tree = Tree(f"[cyan]{self.title}[/cyan]", guide_style="grey50")
        for step in self.steps:
            status = step["status"]
            symbol = STATUS_SYMBOLS.get(status, " ")
            detail = (step["detail"] or "").strip()
            if status == "pending":
                # Pending lines are dimmed entirely
                text = f"{step['label']} ({detail})" if detail else step["label"]
                tree.add(f"{symbol} [bright_black]{text}[/bright_black]")
                continue
            line = f"{symbol} [white]{step['label']}[/white]"
            if detail:
                line += f" [bright_black]({detail})[/bright_black]"
            tree.add(line)
        return tree
