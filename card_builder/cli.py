import json
import logging
import os
from typing import Optional

import click
from pydantic import ValidationError

from card_builder.config.settings import settings
from card_builder.config.sizes import FOLD_OPTIONS, ORIENTATIONS, PRODUCT_TYPES
from card_builder.design.model import DesignDocument
from card_builder.errors import CardBuilderError, PreflightFailedError
from card_builder.renderer.assets import AssetFetcher
from card_builder.renderer.pdf_export import export_design_to_pdf
from card_builder.renderer.raster import RasterRenderer
from card_builder.spec.catalog import resolve_print_spec_for_product
from card_builder.spec.print_spec import generate_print_spec
from card_builder.validator.preflight import ensure_exportable, run_preflight


def _load_design(path: str) -> DesignDocument:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return DesignDocument.from_json(f.read())
    except ValidationError as e:
        raise click.ClickException(f"Invalid design document {path}:\n{e}")


def _spec_for(design: DesignDocument, product: Optional[str], size: Optional[str], orientation: Optional[str], fold: Optional[str]):
    """Explicit --product/--size wins; otherwise the document's own descriptor."""
    if product and size:
        return generate_print_spec(
            product,
            size,
            orientation=orientation or design.print_spec.orientation,
            fold_option=fold,
            bleed_mm=design.print_spec.bleed_mm,
            safe_mm=design.print_spec.safe_mm,
            dpi=design.print_spec.dpi,
        )
    if product or size:
        raise click.UsageError("--product and --size must be given together")
    return design.to_print_spec()


def _echo_preflight(result):
    if not result.errors and not result.warnings:
        click.echo("✅ No issues found.")
        return
    for message in result.errors:
        click.echo(f"ERROR: {message}")
    for message in result.warnings:
        click.echo(f"WARNING: {message}")


spec_options = [
    click.option("--product", type=click.Choice(PRODUCT_TYPES), default=None, help="Product type to check against (with --size)"),
    click.option("--size", "size_id", type=str, default=None, help="Size id, e.g. 5x7 (with --product)"),
    click.option("--orientation", type=click.Choice(ORIENTATIONS), default=None, help="Orientation (default: the document's)"),
    click.option("--fold", type=click.Choice(FOLD_OPTIONS), default=None, help="Fold option for cards"),
]


def with_spec_options(func):
    for option in reversed(spec_options):
        func = option(func)
    return func


@click.group(help="Print geometry, preflight and export for cards, postcards and prints.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def main(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command(help="Print the print spec for a product configuration as JSON.")
@click.argument("product", type=click.Choice(PRODUCT_TYPES))
@click.argument("size_id", type=str)
@click.option("--orientation", type=click.Choice(ORIENTATIONS), default="portrait", show_default=True)
@click.option("--fold", type=click.Choice(FOLD_OPTIONS), default=None, help="bifold | flat (cards default to bifold)")
@click.option("--bleed-mm", "bleed_mm", type=float, default=settings.bleed_mm, show_default=True, help="Bleed on every edge in mm")
@click.option("--safe-mm", "safe_mm", type=float, default=settings.safe_mm, show_default=True, help="Safe inset from the trim edge in mm")
@click.option("--dpi", type=float, default=settings.print_dpi, show_default=True, help="Export DPI recorded on the print spec")
def spec(product: str, size_id: str, orientation: str, fold: Optional[str], bleed_mm: float, safe_mm: float, dpi: float):
    try:
        print_spec = generate_print_spec(product, size_id, orientation, fold, bleed_mm, safe_mm, dpi)
    except (ValueError, CardBuilderError) as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(print_spec.to_dict(), indent=2))


@main.command(help="Resolve the print spec for a catalog product slug / variant uid.")
@click.argument("slug", type=str)
@click.option("--variant", "variant_uid", type=str, default=None, help="Catalog variant uid")
def resolve(slug: str, variant_uid: Optional[str]):
    result = resolve_print_spec_for_product(slug, variant_uid)
    click.echo(json.dumps(result.to_dict(), indent=2))
    if not result.ok:
        raise SystemExit(1)


@main.command(help="Run preflight checks on a design JSON file.")
@click.argument("design_path", type=click.Path(exists=True, dir_okay=False))
@with_spec_options
@click.option("--check-images", is_flag=True, default=False, help="Load images and check their effective DPI")
def preflight(design_path: str, product, size_id, orientation, fold, check_images: bool):
    design = _load_design(design_path)
    print_spec = _spec_for(design, product, size_id, orientation, fold)
    fetcher = AssetFetcher(base_dir=os.path.dirname(os.path.abspath(design_path))) if check_images else None
    result = run_preflight(print_spec, design, fetcher=fetcher)
    click.echo(f"Preflight for {design_path} ({print_spec.name})")
    _echo_preflight(result)
    if not result.is_valid:
        raise SystemExit(1)


@main.command(help="Render one page of a design to PNG.")
@click.argument("design_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--page", "page_id", type=str, default="front", show_default=True, help="Page (side) id to render")
@click.option("--out", "out_path", type=str, default=str(settings.exports_dir / "page.png"), show_default=True, help="Output PNG path")
@click.option("--dpi", type=float, default=None, help="Output DPI (default: the document's)")
@click.option("--no-bleed", "no_bleed", is_flag=True, default=False, help="Crop to the trim box")
@click.option("--force", is_flag=True, default=False, help="Render even if preflight reports blocking errors")
@with_spec_options
def render(design_path: str, page_id: str, out_path: str, dpi: Optional[float], no_bleed: bool, force: bool, product, size_id, orientation, fold):
    design = _load_design(design_path)
    print_spec = _spec_for(design, product, size_id, orientation, fold)
    fetcher = AssetFetcher(base_dir=os.path.dirname(os.path.abspath(design_path)))

    result = run_preflight(print_spec, design)
    if not force:
        try:
            ensure_exportable(result)
        except PreflightFailedError as e:
            _echo_preflight(e.result)
            click.echo(f"❌ {e}. Use --force to render anyway.")
            raise SystemExit(1)

    try:
        rendered = RasterRenderer(fetcher=fetcher).render(design, page_id, dpi=dpi, include_bleed=not no_bleed)
    except CardBuilderError as e:
        raise click.ClickException(str(e))

    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    rendered.image.save(out_path, format="PNG", dpi=(rendered.dpi, rendered.dpi))
    for skipped in rendered.skipped:
        click.echo(f"WARNING: skipped element {skipped.element_id}: {skipped.reason}")
    click.echo(f"✅ Rendered {page_id} to {out_path} ({rendered.image.width}x{rendered.image.height} px at {rendered.dpi:g} DPI)")


@main.command(help="Export all pages of a design to a print PDF.")
@click.argument("design_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--out", "out_path", type=str, default=str(settings.exports_dir / "design.pdf"), show_default=True, help="Output PDF path")
@click.option("--guides", is_flag=True, default=False, help="Draw dashed safe-area and fold guides (proofs)")
@click.option("--no-bleed", "no_bleed", is_flag=True, default=False, help="Pages cover the trim box only")
@click.option("--force", is_flag=True, default=False, help="Export even if preflight reports blocking errors")
@with_spec_options
def pdf(design_path: str, out_path: str, guides: bool, no_bleed: bool, force: bool, product, size_id, orientation, fold):
    design = _load_design(design_path)
    print_spec = _spec_for(design, product, size_id, orientation, fold)

    result = run_preflight(print_spec, design)
    if not result.is_valid and not force:
        _echo_preflight(result)
        click.echo("❌ Preflight failed. Use --force to export anyway.")
        raise SystemExit(1)

    fetcher = AssetFetcher(base_dir=os.path.dirname(os.path.abspath(design_path)))
    try:
        export_design_to_pdf(
            design,
            out_path=out_path,
            include_bleed=not no_bleed,
            draw_guides=guides,
            print_spec=print_spec,
            fetcher=fetcher,
        )
    except (ValueError, CardBuilderError) as e:
        raise click.ClickException(str(e))
    click.echo(f"✅ Generated {out_path} for {print_spec.name}")


if __name__ == "__main__":
    main()
