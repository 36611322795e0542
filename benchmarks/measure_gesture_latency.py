"""Benchmark helper for per-event canvas gesture cost."""
from __future__ import annotations

import argparse
import json
import statistics
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Sequence

from richmenu_studio.core.actions import MessageAction
from richmenu_studio.core.geometry import Bounds, CanvasSize, Point, Viewport, fit_viewport
from richmenu_studio.editor.document_model import MAX_REGIONS, MenuDocument, Region
from richmenu_studio.editor.interaction import CanvasInteraction
from richmenu_studio.editor.overlays import build_overlays
from richmenu_studio.ui.domain.menu_store import MenuStore


@dataclass(slots=True)
class BenchmarkResult:
    label: str
    regions: int
    events: int
    samples_ms: list[float]

    @property
    def median_ms(self) -> float:
        return statistics.median(self.samples_ms)

    @property
    def per_event_us(self) -> float:
        return self.median_ms * 1000.0 / max(1, self.events)


def _grid_document(count: int, size: CanvasSize) -> MenuDocument:
    columns = 5
    rows = max(1, (count + columns - 1) // columns)
    width = size.width // columns
    height = size.height // rows
    regions = [
        Region(
            id=f"area-{index}",
            bounds=Bounds((index % columns) * width, (index // columns) * height, width, height),
            action=MessageAction(text=f"Area {index + 1}"),
        )
        for index in range(count)
    ]
    return MenuDocument(size=size, regions=tuple(regions))


def _time(runs: int, body: Callable[[], None]) -> list[float]:
    samples: list[float] = []
    for _ in range(runs):
        start = perf_counter()
        body()
        samples.append((perf_counter() - start) * 1000.0)
    return samples


def _drag(document: MenuDocument, viewport: Viewport, events: int) -> Callable[[], None]:
    def body() -> None:
        store = MenuStore(document)
        interaction = CanvasInteraction(store)
        interaction.press_region("area-0", Point(10.0, 10.0), viewport)
        for step in range(events):
            interaction.move(Point(10.0 + step * 0.3, 10.0 + step * 0.1), viewport)
        interaction.release()

    return body


def _draw(document: MenuDocument, viewport: Viewport, events: int) -> Callable[[], None]:
    def body() -> None:
        store = MenuStore(document.with_regions(document.regions[:-1]))
        interaction = CanvasInteraction(store)
        interaction.press_canvas(Point(viewport.left + 1.0, viewport.top + 1.0), viewport)
        for step in range(events):
            interaction.move(Point(viewport.left + 1.0 + step, viewport.top + 1.0 + step * 0.5), viewport)
            build_overlays(store.document, store.selected_id, interaction.draft)
        interaction.release()

    return body


def _export(document: MenuDocument, events: int) -> Callable[[], None]:
    def body() -> None:
        for _ in range(events):
            MenuDocument.from_json(document.to_json())

    return body


def run(runs: int, events: int, width: int, height: int) -> list[BenchmarkResult]:
    document = _grid_document(MAX_REGIONS, CanvasSize.full())
    viewport = fit_viewport(width, height, document.size)
    if viewport is None:
        raise SystemExit("Viewport size must be positive")
    return [
        BenchmarkResult("drag", MAX_REGIONS, events, _time(runs, _drag(document, viewport, events))),
        BenchmarkResult("draw + overlays", MAX_REGIONS, events, _time(runs, _draw(document, viewport, events))),
        BenchmarkResult("export + import", MAX_REGIONS, events, _time(runs, _export(document, events))),
    ]


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--runs", type=int, default=20, help="Repetitions per scenario")
    parser.add_argument("--events", type=int, default=200, help="Pointer events per repetition")
    parser.add_argument("--width", type=int, default=750, help="Canvas widget width in pixels")
    parser.add_argument("--height", type=int, default=506, help="Canvas widget height in pixels")
    parser.add_argument("--json", action="store_true", help="Emit results as JSON")
    args = parser.parse_args(argv)

    results = run(args.runs, args.events, args.width, args.height)

    if args.json:
        payload = [
            {
                "label": result.label,
                "regions": result.regions,
                "events": result.events,
                "median_ms": result.median_ms,
                "per_event_us": result.per_event_us,
            }
            for result in results
        ]
        print(json.dumps(payload, indent=2))
        return

    max_label = max(len(result.label) for result in results)
    header = f"{'Scenario':<{max_label}}  Regions  Events  Median (ms)  Per event (µs)"
    print(header)
    print("-" * len(header))
    for result in results:
        print(
            f"{result.label:<{max_label}}  "
            f"{result.regions:>7}  "
            f"{result.events:>6}  "
            f"{result.median_ms:>11.2f}  "
            f"{result.per_event_us:>14.1f}"
        )


if __name__ == "__main__":
    main()
