import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Iterator

from typer import Argument, Exit, Option, Typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from .config import resolve_db_path, resolve_memo_dir
from .embeddings import EmbeddingProvider
from .errors import EmbeddingError, MemomerError
from .indexing import IndexMaintainer, MaintenanceResult
from .memo import create_memo, parse_memo
from .search import MemoQueryEngine, SearchQuery
from .service import MemoService
from .storage import DuckDBEmbeddingStore, FileMemoStorage

app = Typer(help="Manage Markdown memos and search them by meaning.")
console = Console()
err_console = Console(stderr=True)

MemoDirOption = Annotated[
    str | None,
    Option("--dir", help="Memo directory. Defaults to $MEMOMER_DIR or the current directory."),
]
DbPathOption = Annotated[
    str | None,
    Option(
        "--db-path",
        help="Index database path. Defaults to $MEMOMER_DB_PATH or <dir>/.memomer.duckdb.",
    ),
]


def _embeddings_unavailable(text: str) -> list[float]:
    raise EmbeddingError("This command does not embed text.")


@contextmanager
def open_service(
    memo_dir: str | None,
    db_path: str | None,
    *,
    with_embeddings: bool = True,
) -> Iterator[MemoService]:
    resolved_dir = resolve_memo_dir(memo_dir)
    if with_embeddings:
        provider = EmbeddingProvider()
        embed_document, embed_query = provider.embed_document, provider.embed_query
    else:
        embed_document = embed_query = _embeddings_unavailable

    store = DuckDBEmbeddingStore.open(resolve_db_path(db_path, memo_dir=resolved_dir))
    try:
        storage = FileMemoStorage(resolved_dir)
        yield MemoService(
            storage=storage,
            maintainer=IndexMaintainer(store, storage, embed_document),
            engine=MemoQueryEngine(store, embed_query),
        )
    finally:
        store.close()


@contextmanager
def cli_errors() -> Iterator[None]:
    try:
        yield
    except (MemomerError, ValueError) as exc:
        err_console.print(f"[bold red]Error:[/] {exc}", highlight=False)
        raise Exit(code=1) from exc


def render_result(title: str, result: MaintenanceResult) -> None:
    lines = [
        f"Indexed: {result.indexed}",
        f"Removed: {result.removed}",
        f"Unchanged: {result.unchanged}",
        f"Skipped: {result.skipped}",
        f"Failed: {result.failed}",
    ]
    if result.cancelled:
        lines.append("Cancelled before completion.")
    console.print(
        Panel(
            "\n".join(lines),
            title_align="left",
            title=title,
            border_style="bold green" if result.ok else "bold yellow",
        )
    )
    if result.failures:
        table = Table(title="Failures", title_justify="left")
        table.add_column("Memo")
        table.add_column("Error")
        for name, message in result.failures:
            table.add_row(name, message)
        console.print(table)
        raise Exit(code=1)


def build_name_tree(names: list[str]) -> Tree:
    """Nest memo names by their ``/``-separated parts, siblings sorted."""
    nested: dict[str, dict] = {}
    for name in names:
        node = nested
        for part in name.split("/"):
            if part:
                node = node.setdefault(part, {})

    def add_children(branch: Tree, node: dict[str, dict]) -> None:
        for part in sorted(node):
            add_children(branch.add(Text(part)), node[part])

    root = Tree("", hide_root=True)
    add_children(root, nested)
    return root


@app.callback()
def main(
    verbose: Annotated[
        bool, Option("--verbose", "-v", help="Log index maintenance details.")
    ] = False,
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


@app.command()
def create(
    name: Annotated[str, Argument(help="Memo name, e.g. /work/meeting.")],
    content: Annotated[
        str | None, Option("--content", "-c", help="Memo text.")
    ] = None,
    file: Annotated[
        Path | None, Option("--file", "-f", help="Read memo Markdown from a file.")
    ] = None,
    tag: Annotated[
        list[str] | None, Option("--tag", "-t", help="Tag to attach; repeatable.")
    ] = None,
    memo_dir: MemoDirOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Create or update a memo and index it."""
    with cli_errors():
        if file is not None and tag:
            raise ValueError(
                "--tag cannot be combined with --file; put tags in the file's front matter."
            )
        if file is not None:
            memo = parse_memo(name, file.read_text(encoding="utf-8"))
        elif content is not None:
            memo = create_memo(name, content, tag or [])
        else:
            raise ValueError("Either --content or --file is required.")
        with open_service(memo_dir, db_path) as service:
            service.save(memo)
    console.print(f"Saved memo [bold]{name}[/]")


@app.command()
def get(
    name: Annotated[str, Argument(help="Memo name.")],
    memo_dir: MemoDirOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Print a memo."""
    with cli_errors():
        with open_service(memo_dir, db_path, with_embeddings=False) as service:
            memo = service.get(name)
    if memo is None:
        err_console.print(f"[bold red]Memo not found:[/] {name}", highlight=False)
        raise Exit(code=1)
    if memo.tags:
        console.print(f"Tags: {', '.join(memo.tags)}", markup=False, highlight=False)
        console.print("---", markup=False, highlight=False)
    console.print(memo.content, markup=False, highlight=False)


@app.command()
def delete(
    name: Annotated[str, Argument(help="Memo name.")],
    memo_dir: MemoDirOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Delete a memo and drop it from the index."""
    with cli_errors():
        with open_service(memo_dir, db_path, with_embeddings=False) as service:
            service.delete(name)
    console.print(f"Deleted memo [bold]{name}[/]")


@app.command("list")
def list_memos(
    tree: Annotated[bool, Option("--tree", help="Show memos as a directory tree.")] = False,
    memo_dir: MemoDirOption = None,
    db_path: DbPathOption = None,
) -> None:
    """List memo names."""
    with cli_errors():
        with open_service(memo_dir, db_path, with_embeddings=False) as service:
            names = service.list()
    if tree:
        console.print(build_name_tree(names))
        return
    for name in names:
        console.print(name, markup=False, highlight=False)


@app.command()
def search(
    text: Annotated[str | None, Argument(help="Text to search for.")] = None,
    tag: Annotated[
        list[str] | None, Option("--tag", "-t", help="Required tag; repeatable.")
    ] = None,
    dir_prefix: Annotated[
        str | None, Option("--dir-prefix", help="Only memos whose name starts with this.")
    ] = None,
    limit: Annotated[int | None, Option("--limit", "-n", help="Maximum results.")] = None,
    memo_dir: MemoDirOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Search memos by meaning, tags, and directory."""
    query = SearchQuery(text=text, tags=tuple(tag or ()), directory=dir_prefix)
    with cli_errors():
        with open_service(memo_dir, db_path, with_embeddings=bool(text)) as service:
            results = service.search(query, limit=limit)

    if not results:
        console.print("No matching memos.")
        return
    table = Table(title="Search Results", title_justify="left")
    table.add_column("Memo", no_wrap=True)
    table.add_column("Score", justify="right")
    for result in results:
        table.add_row(result.name, f"{result.score:.4f}")
    console.print(table)


@app.command()
def rebuild(
    memo_dir: MemoDirOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Clear the index and re-embed every memo."""
    with cli_errors():
        with open_service(memo_dir, db_path) as service:
            result = service.rebuild()
    render_result("Rebuild Complete", result)


@app.command()
def sync(
    memo_dir: MemoDirOption = None,
    db_path: DbPathOption = None,
) -> None:
    """Bring the index in line with the memo directory."""
    with cli_errors():
        with open_service(memo_dir, db_path) as service:
            result = service.sync()
    render_result("Sync Complete", result)
