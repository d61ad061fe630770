"""
Reaction-Diffusion Viewer - Entry Point

Usage:
    python -m reaction_diffusion [--size N] [--window PX] [--seed KIND]
                                 [--image PATH] [--snap STEPS] [--out DIR]

Examples:
    python -m reaction_diffusion
    python -m reaction_diffusion --size 400 --window 800
    python -m reaction_diffusion --seed points --snap 300
    python -m reaction_diffusion --image photo.jpg --snap 200 --out renders

Options:
    --size N        Buffer resolution (100-600 in steps of 100). Defaults to
                    the last choice saved in the settings file.
    --window PX     Canvas size in window pixels (default 600)
    --seed KIND     Initial frame: disc, points, text or blank (default disc)
    --image PATH    Composite a JPEG / PNG onto the initial frame
    --snap STEPS    Headless: run STEPS frames, save a PNG, exit
    --out DIR       Directory for saved PNGs (default screenshots)
"""

import sys

import numpy as np

from .settings import RESOLUTIONS, DISPLAY_SIZE, ResolutionStore
from .simulator import Simulation, SEED_ORDER


def build_simulation(size, seed, image, out_dir, rng=None):
    """Create a session, seed it and optionally composite an image.

    Runs the three warm-up frames before any user seed is applied.
    """
    settings = ResolutionStore()
    if size is not None:
        settings.save(size)
    sim = Simulation.create(settings=settings, rng=rng, save_dir=out_dir)
    sim.seed(seed)
    if image:
        if sim.load_image(image):
            sim.submit_image()
            sim.resume()
    return sim


def snap(sim, steps):
    """Headless mode: run N frames, save a PNG, exit."""
    print(f"  running {steps} steps...", end="", flush=True)
    sim.resume()
    for _ in range(steps):
        sim.tick()
    path = sim.save(sim.save_dir)
    stats = sim.stats
    print(f"  mean={stats['mean']:.3f} dark={stats['dark_pct']:.1f}%")
    sim.destroy()
    return path


def main(argv=None):
    size = None
    window = DISPLAY_SIZE
    snap_steps = 0
    seed = "disc"
    image = None
    out_dir = "screenshots"

    args = sys.argv[1:] if argv is None else argv
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--size" and i + 1 < len(args):
            size = int(args[i + 1])
            if size not in RESOLUTIONS:
                print(f"Unsupported size: {size} (choose from {', '.join(map(str, RESOLUTIONS))})")
                return
            i += 2
        elif arg == "--window" and i + 1 < len(args):
            window = int(args[i + 1].split("x")[0])
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_steps = int(args[i + 1])
            i += 2
        elif arg == "--seed" and i + 1 < len(args):
            seed = args[i + 1]
            if seed not in SEED_ORDER:
                print(f"Unknown seed: {seed} (choose from {', '.join(SEED_ORDER)})")
                return
            i += 2
        elif arg == "--image" and i + 1 < len(args):
            image = args[i + 1]
            i += 2
        elif arg == "--out" and i + 1 < len(args):
            out_dir = args[i + 1]
            i += 2
        elif arg in ("--help", "-h"):
            print(__doc__)
            return
        else:
            print(f"Unknown argument: {arg}")
            print("Use --help to see the options")
            return

    sim = build_simulation(size, seed, image, out_dir, rng=np.random.default_rng())

    if snap_steps > 0:
        print(f"Headless snap mode: {seed} @ {sim.size}x{sim.size}, {snap_steps} steps")
        snap(sim, snap_steps)
        return

    print("Starting Reaction-Diffusion Viewer")
    print(f"  Seed: {seed}")
    print(f"  Buffer: {sim.size}x{sim.size}")
    print(f"  Window: {window}x{window}")
    print()

    from .viewer import Viewer
    Viewer(sim, width=window, height=window).run()


if __name__ == "__main__":
    main()
