"""
Insect Development Simulator - Entry Point

Usage:
    python -m insect_development [body_plan] [--steps N] [--dt X] [--seed N]
                                 [--snap N] [--window WxH] [--list]

Examples:
    python -m insect_development
    python -m insect_development coleoptera
    python -m insect_development odonata --steps 1000 --seed 7
    python -m insect_development diptera --snap 600

Modes:
    (default)   Interactive pygame viewer
    --steps N   Headless run of N ticks, prints progress and final stats
    --snap N    Headless run of N ticks, saves one PNG per morphogen

Use --list to see all available body plans.
"""

import sys
from .presets import DEFAULT_PRESET, PRESET_ORDER, list_presets


def _report(sim):
    stats = sim.stats
    genes = ", ".join(stats["expressed_genes"]) or "-"
    print(f"  tick {stats['tick']:6d}  {stats['stage']:7s}  age {stats['age']:7.2f}  "
          f"progress {stats['progress']:.3f}  rules {stats['rules']:3d}  genes: {genes}")


def headless(body_plan, steps, dt, seed):
    """Run N ticks without a window and print progress."""
    from .simulator import DevelopmentSimulator

    sim = DevelopmentSimulator(body_plan, seed=seed)
    every = max(1, steps // 10)
    for i in range(steps):
        sim.step(dt)
        if (i + 1) % every == 0:
            _report(sim)

    print("\nMorphogen averages:")
    for name, avg in sim.morphogen_averages().items():
        print(f"  {name:20s} {avg:9.4f}")
    print("\nSegments:")
    for seg, count in zip(sim.state.segments, sim.stats["segment_counts"]):
        print(f"  {seg.name:11s} pos {seg.relative_position:.3f}  size {seg.size:.3f}  "
              f"pairs {seg.appendage_pairs}  particles {count}")
    return sim


def snap(body_plan, steps, dt, seed, size=512):
    """Headless mode: run N steps, save one PNG per morphogen, exit."""
    import os
    from PIL import Image
    from .colormaps import compose_frame
    from .simulator import DevelopmentSimulator

    screenshots_dir = os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
        "screenshots"
    )
    os.makedirs(screenshots_dir, exist_ok=True)

    plans = [body_plan] if body_plan != "all" else PRESET_ORDER
    for key in plans:
        sim = DevelopmentSimulator(key, seed=seed)
        sim.run(steps, dt)
        published = sim.latest_snapshot()
        for name in published["averages"]:
            rgb = compose_frame(published, name, None, size=size,
                                snapshot=published["particles"],
                                bounds=published["bounds"])
            slug = name.lower().replace("-", "_").replace(" ", "_")
            path = os.path.join(screenshots_dir, f"insect_{key}_{slug}.png")
            Image.fromarray(rgb).save(path)
            print(f" saved: {path}")


def main():
    body_plan = DEFAULT_PRESET
    win_w, win_h = 720, 720
    steps = 0
    snap_steps = 0
    dt = 0.1
    seed = None

    args = sys.argv[1:]
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--steps" and i + 1 < len(args):
            steps = int(args[i + 1])
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_steps = int(args[i + 1])
            i += 2
        elif arg == "--dt" and i + 1 < len(args):
            dt = float(args[i + 1])
            i += 2
        elif arg == "--seed" and i + 1 < len(args):
            seed = int(args[i + 1])
            i += 2
        elif arg == "--window" and i + 1 < len(args):
            parts = args[i + 1].split("x")
            win_w, win_h = int(parts[0]), int(parts[1])
            i += 2
        elif arg == "--list":
            for kind in ("order", "species"):
                print(f"\n  [{kind}]")
                for key, name, desc in list_presets(kind):
                    print(f"    {key:14s} {name:14s} {desc}")
            print()
            return
        elif arg in ("--help", "-h"):
            print(__doc__)
            return
        elif arg in PRESET_ORDER or arg == "all":
            body_plan = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available body plans")
            return

    if snap_steps > 0:
        print(f"Headless snap mode: {body_plan}, {snap_steps} steps (dt={dt})")
        snap(body_plan, snap_steps, dt, seed)
        return

    if steps > 0:
        if body_plan == "all":
            print("'all' is only supported with --snap")
            return
        print(f"Headless run: {body_plan}, {steps} steps (dt={dt})")
        headless(body_plan, steps, dt, seed)
        return

    if body_plan == "all":
        body_plan = DEFAULT_PRESET

    from .viewer import Viewer

    print("Starting Insect Development Viewer")
    print(f"  Body plan: {body_plan}")
    print(f"  Window: {win_w}x{win_h}")
    print()

    viewer = Viewer(width=win_w, height=win_h, body_plan=body_plan, seed=seed, dt=dt)
    viewer.run()


if __name__ == "__main__":
    main()
