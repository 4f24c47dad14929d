#!/usr/bin/env python3
"""
Brick Generator Web Interface

A simple Gradio-based web UI for turning grid tables into 3D brick models.

Run with: python app.py
Then open http://localhost:7860 in your browser
"""

import csv
import io
import sys
from pathlib import Path
import tempfile

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import gradio as gr
from brick_generator import BrickGenerator, ConfigurationError, DisplayOptions
from brick_generator.ingestion import parse_grid_rows


DEMO_TABLES = {
    "House": """A,0,23,23,23,0
A,23,23,23,23,23
A,23,23,23,23,23
B,0,0,4,0,0
B,0,4,4,4,0
B,4,4,4,4,4
C,0,0,4,0,0""",
    "Flag": """1,4,4,1,1,1,1
1,4,4,1,1,1,1
1,1,1,1,1,1,1
1,5,5,5,5,5,5""",
    "Pyramid": """1,6,6,6,6,6
1,6,6,6,6,6
1,6,6,6,6,6
1,6,6,6,6,6
1,6,6,6,6,6
2,0,0,0,0,0
2,0,12,12,12,0
2,0,12,12,12,0
2,0,12,12,12,0
3,0,0,0,0,0
3,0,0,4,0,0
3,0,0,0,0,0""",
}


def parse_table_text(text: str):
    """Parse pasted CSV text into a GridTable."""
    rows = list(csv.reader(io.StringIO(text.strip())))
    return parse_grid_rows(rows, source="pasted table")


def parse_guide_text(text: str):
    """Parse a pasted `value,name` guide; blank text means no guide."""
    if not text or not text.strip():
        return None
    reader = csv.DictReader(io.StringIO(text.strip()))
    columns = {name: [] for name in (reader.fieldnames or [])}
    for row in reader:
        for name in columns:
            columns[name].append((row.get(name) or "").strip())
    return columns


def process_table(
    table_text: str,
    guide_text: str,
    re_level: bool,
    exclude_colors: str,
    max_level: int,
    zscale: float,
    solid: bool
):
    """
    Process a pasted grid table and generate a brick model.

    Returns preview path, stats text, and file path for download.
    """
    if not table_text or not table_text.strip():
        return None, "Please paste a grid table first.", None

    try:
        table = parse_table_text(table_text)
        guide = parse_guide_text(guide_text)
        excluded = tuple(int(c) for c in exclude_colors.replace(",", " ").split())
    except (ValueError, ConfigurationError) as e:
        return None, f"**Error:** {e}", None

    generator = BrickGenerator()
    generator.load_table(table)

    try:
        generator.set_color_guide(guide)
    except ConfigurationError as e:
        return None, f"**Color guide error:** {e}", None

    generator.normalize(
        re_level=re_level,
        exclude_colors=excluded,
        max_level=max_level if max_level > 0 else None
    )

    if generator.block_count == 0:
        return None, "No bricks left after filtering.", None

    info = generator.preview()
    bounds = info["bounds"]

    stats_text = f"""## Model Complete!

| Metric | Value |
|--------|-------|
| Table Rows | {info['table_rows']} |
| Layers | {', '.join(str(l) for l in info['layers'])} |
| Bricks | {info['block_count']:,} |
| Footprint | {bounds.max_x - bounds.min_x + 1} x {bounds.max_y - bounds.min_y + 1} |

**Settings:** re-level={re_level}, zscale={zscale}, solid={solid}
"""

    export_dir = tempfile.mkdtemp(prefix="bricks_")
    obj_path = str(Path(export_dir) / "model.obj")
    generator.export_obj(
        obj_path,
        options=DisplayOptions(zscale=zscale, solid=solid),
        y_up=True
    )

    return obj_path, stats_text, obj_path


def load_demo(name: str):
    """Get the text of a demo table."""
    if not name:
        return None
    return DEMO_TABLES.get(name)


# Build the Gradio interface
with gr.Blocks(title="Brick Generator") as app:

    gr.Markdown("""
    # Brick Generator
    ### Convert Grid Tables to 3D Brick Models

    Paste a grid table (first column = layer, other columns = color codes) or try a demo.
    """)

    with gr.Row():
        # Left column - Input
        with gr.Column(scale=1):
            gr.Markdown("### Grid Table")

            table_input = gr.Textbox(
                label="Grid table (CSV)",
                lines=12,
                placeholder="A,4,4,4\nA,4,0,4\nB,0,1,0"
            )

            with gr.Row():
                demo_dropdown = gr.Dropdown(
                    choices=list(DEMO_TABLES),
                    label="Or try a demo"
                )
                demo_btn = gr.Button("Load Demo")

            guide_input = gr.Textbox(
                label="Color guide (optional CSV with value,name header)",
                lines=4,
                placeholder="value,name\n1,Bright red\n2,White"
            )

            gr.Markdown("### Settings")

            re_level = gr.Checkbox(value=True, label="Re-level layer markers")

            exclude_colors = gr.Textbox(
                label="Exclude color codes (space or comma separated)",
                value=""
            )

            max_level = gr.Slider(
                minimum=0,
                maximum=32,
                value=0,
                step=1,
                label="Max layer (0 = all)"
            )

            zscale = gr.Slider(
                minimum=0.05,
                maximum=1.0,
                value=0.167,
                step=0.001,
                label="Z Scale"
            )

            solid = gr.Checkbox(value=False, label="Solid base")

            generate_btn = gr.Button("Generate Brick Model", variant="primary")

        # Middle column - 3D Preview
        with gr.Column(scale=2):
            gr.Markdown("### 3D Preview")
            gr.Markdown("*Click and drag to rotate, scroll to zoom*")

            model_preview = gr.Model3D(
                label="3D Model Preview",
                clear_color=[0.1, 0.1, 0.1, 1.0]
            )

            stats_output = gr.Markdown(
                value="Paste a grid table and click 'Generate' to see results."
            )

        # Right column - Downloads
        with gr.Column(scale=1):
            gr.Markdown("### Downloads")

            obj_output = gr.File(label="OBJ (Universal)")

            gr.Markdown("""
            ---
            **Tips:**
            - Code **0** or blank = no brick
            - The first row of a layer is its back edge
            - Layers are stacked in sorted marker order
            """)

    demo_btn.click(
        fn=load_demo,
        inputs=[demo_dropdown],
        outputs=[table_input]
    )

    generate_btn.click(
        fn=process_table,
        inputs=[
            table_input,
            guide_input,
            re_level,
            exclude_colors,
            max_level,
            zscale,
            solid
        ],
        outputs=[model_preview, stats_output, obj_output]
    )


if __name__ == "__main__":
    print("\n" + "="*60)
    print("Brick Generator Web Interface")
    print("="*60)
    print("\nStarting server...")
    print("Open http://localhost:7860 in your browser\n")

    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
