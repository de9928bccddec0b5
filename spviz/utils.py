import csv
import io


def format_xyz(lattice, trail=None, symbol="X", trail_symbol="H", step=0):
    """
    Extended XYZ frame (OVITO compatible) of the lattice atoms, followed by
    the trail points as trail_symbol pseudo-atoms. The Lattice string is the
    bounding box of the atoms.
    """
    rows = [(symbol, p) for p in lattice.positions]
    if trail is not None:
        rows += [(trail_symbol, p) for p in trail]

    Lx, Ly, Lz = lattice.bbox.extent
    ox, oy, oz = lattice.bbox.lo

    lines = [
        f"{len(rows)}",
        f"Step={step} "
        f'Lattice="{Lx} 0 0  0 {Ly} 0  0 0 {Lz}" '
        f'Origin="{ox} {oy} {oz}" '
        f"Properties=species:S:1:pos:R:3",
    ]
    for s, (x, y, z) in rows:
        lines.append(f"{s} {x:.8f} {y:.8f} {z:.8f}")
    return "\n".join(lines) + "\n"


def write_xyz(lattice, trail=None, filename="trajectory.xyz", symbol="X", step=0):
    """Write one extended XYZ frame; step 0 truncates, later steps append."""
    mode = "a" if step > 0 else "w"
    with open(filename, mode) as f:
        f.write(format_xyz(lattice, trail, symbol=symbol, step=step))


def to_csv(*cols, headers):
    """Columns -> CSV bytes with a header row."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(headers)
    for row in zip(*cols):
        writer.writerow(row)
    return buf.getvalue().encode()
