#!/usr/bin/env python3
"""
Whitted - A Python Whitted-style ray tracer

Main entry point for rendering scenes.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from whitted.vec3 import Color, Point3
from whitted.transform import Transform
from whitted.camera import Camera
from whitted.shapes import Sphere, Triangle
from whitted.materials import Material
from whitted.lights import PointLight
from whitted.image import Image
from whitted.renderer import RenderSettings
from whitted.scene import Scene
from whitted.scene_parser import SceneParseError, load_scene


def create_demo_scene(settings: RenderSettings) -> Scene:
    """Create a demo scene with a matte floor, a mirror and a glass sphere."""
    scene = Scene(settings)
    scene.set_ambient_light_color(Color(0.1, 0.1, 0.1))
    scene.set_camera(Camera(Transform(Point3(0, 1, -4)), focal_length=4.0))

    floor = Material(
        ambient_color=Color(0.4, 0.4, 0.4),
        diffuse_color=Color(0.6, 0.6, 0.6)
    )
    scene.add_entity(Triangle(Point3(-10, 0, -10), Point3(-10, 0, 20), Point3(10, 0, -10), floor))
    scene.add_entity(Triangle(Point3(10, 0, -10), Point3(-10, 0, 20), Point3(10, 0, 20), floor))

    red = Material(
        ambient_color=Color(0.2, 0.02, 0.02),
        diffuse_color=Color(0.8, 0.1, 0.1),
        specular_color=Color(0.6, 0.6, 0.6),
        shininess=40
    )
    scene.add_entity(Sphere(Point3(-1.5, 0.8, 2), 0.8, red))

    mirror = Material(
        specular_color=Color(1, 1, 1),
        shininess=200,
        reflectivity=0.9
    )
    scene.add_entity(Sphere(Point3(1.5, 1.0, 3), 1.0, mirror))

    scene.add_entity(Sphere(Point3(0, 0.6, 0.5), 0.6, Material.glass(1.5)))

    scene.add_point_light(PointLight(Point3(-2, 5, -2), Color(0.8, 0.8, 0.8)))
    scene.add_point_light(PointLight(Point3(3, 4, 0), Color(0.3, 0.3, 0.4)))

    return scene


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Whitted - A Python Whitted-style ray tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --output render.png
  python main.py -f scenes/room.yaml --width 640 --height 480 --aa 3 -o room.png
  python main.py -f scenes/room.yaml --aperture 0.05 --focal-length 4 --time 1.5
        '''
    )

    parser.add_argument('-f', '--file', type=str, default=None, help='Scene file (YAML or JSON); demo scene if omitted')
    parser.add_argument('-o', '--output', type=str, default='output/render.png', help='Output filename')
    parser.add_argument('--width', type=int, default=None, help='Image width (default: 800)')
    parser.add_argument('--height', type=int, default=None, help='Image height (default: 600)')
    parser.add_argument('--aa', type=int, default=None, dest='aa_multiplier', help='Anti-aliasing multiplier (default: 1)')
    parser.add_argument('--aperture', type=float, default=None, dest='aperture_radius', help='Aperture radius, 0 = pinhole')
    parser.add_argument('--focal-length', type=float, default=None, dest='focal_length', help='Focal length for depth of field')
    parser.add_argument('--depth', type=int, default=None, dest='max_depth', help='Max recursion depth (default: 8)')
    parser.add_argument('--threads', type=int, default=None, dest='num_threads', help='Number of threads (0=auto)')
    parser.add_argument('--seed', type=int, default=None, help='Seed for aperture sampling')
    parser.add_argument('--time', type=float, default=0.0, help='Scene time in seconds passed to animations')
    parser.add_argument('--gamma', type=float, default=1.0, help='Gamma applied when encoding (default: 1.0)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    overrides = {
        key: getattr(args, key)
        for key in ('width', 'height', 'aa_multiplier', 'aperture_radius',
                    'focal_length', 'max_depth', 'num_threads', 'seed')
    }

    print("=" * 60)
    print("Whitted Ray Tracer")
    print("=" * 60)

    try:
        if args.file:
            print(f"\nLoading scene: {args.file}")
            scene, settings = load_scene(args.file, overrides)
        else:
            print("\nCreating demo scene")
            settings = RenderSettings(**{k: v for k, v in overrides.items() if v is not None})
            scene = create_demo_scene(settings)
    except (SceneParseError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"\nRender Settings:")
    print(f"  Resolution: {settings.width}x{settings.height}")
    print(f"  AA Multiplier: {settings.aa_multiplier}")
    print(f"  Aperture: {scene.camera.aperture_radius}")
    print(f"  Max Depth: {settings.max_depth}")
    print(f"  Threads: {settings.num_threads}")
    print(f"  Entities in scene: {len(scene)}")

    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', flush=True)

    scene.renderer.set_progress_callback(progress_callback)

    image = Image(settings.width, settings.height)

    print("\nRendering...")
    start_time = time.time()
    scene.render(image, args.time)
    elapsed = time.time() - start_time
    print(f"\nRender completed in {elapsed:.2f} seconds")

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"\nSaving to: {args.output}")
    image.save(output_path, args.gamma)

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
