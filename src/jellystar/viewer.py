# viewer.py
"""
Preview window: uploads the simulation's render buffers each frame and draws
them with a single diffuse light. Needs the ``viewer`` extra (pygame, moderngl).
"""

import logging
from pathlib import Path

import moderngl
import numpy as np
import pygame

from jellystar.mesh.obj import RenderBuffers
from jellystar.sim import Simulation
from jellystar.transforms import normal_matrix, orbit_model_view, orbit_projection

logger = logging.getLogger(__name__)

BODY_COLOR = (0.9, 0.7, 0.2)
LIGHT_DIR = (0.577, 0.577, 0.577)


class Viewer:
    def __init__(self, ctx: moderngl.Context, width: int = 1000, height: int = 800) -> None:
        self.ctx = ctx
        self.ctx.enable(moderngl.DEPTH_TEST)
        self.width = width
        self.height = height

        base = Path(__file__).parent / "shaders"
        self.prog = self.ctx.program(
            vertex_shader=(base / "mesh.vert").read_text(),
            fragment_shader=(base / "mesh.frag").read_text(),
        )

        self.vbo: moderngl.Buffer | None = None
        self.nbo: moderngl.Buffer | None = None
        self.vao: moderngl.VertexArray | None = None
        self.vertex_count = 0

    def upload(self, buffers: RenderBuffers) -> None:
        """Copy a buffer snapshot to the GPU; reallocates only when the size changes."""
        vbo, nbo = self.vbo, self.nbo
        if vbo is None or nbo is None or vbo.size != buffers.positions.nbytes:
            self._release()
            vbo = self.ctx.buffer(reserve=buffers.positions.nbytes, dynamic=True)
            nbo = self.ctx.buffer(reserve=buffers.normals.nbytes, dynamic=True)
            self.vao = self.ctx.vertex_array(
                self.prog,
                [(vbo, "3f", "in_position"), (nbo, "3f", "in_normal")],
            )
            self.vbo, self.nbo = vbo, nbo
            logger.debug(f"Allocated GPU buffers for {buffers.vertex_count} vertices")

        vbo.write(buffers.positions.tobytes())
        nbo.write(buffers.normals.tobytes())
        self.vertex_count = buffers.vertex_count

    def draw(self, pitch: float, yaw: float, distance: float) -> None:
        self.ctx.clear(0.1, 0.1, 0.15, 1.0)
        if self.vao is None or self.vertex_count == 0:
            return

        mv = orbit_model_view(distance, pitch, yaw)
        mvp = orbit_projection(self.width / self.height, distance) @ mv

        # GL expects column-major
        self.prog["u_mvp"].write(mvp.T.astype("f4").tobytes())  # type: ignore
        self.prog["u_normal_matrix"].write(normal_matrix(mv).T.astype("f4").tobytes())  # type: ignore
        self.prog["u_light_dir"].value = LIGHT_DIR  # type: ignore
        self.prog["u_color"].value = BODY_COLOR  # type: ignore

        self.vao.render(moderngl.TRIANGLES, vertices=self.vertex_count)

    def _release(self) -> None:
        for obj in (self.vao, self.vbo, self.nbo):
            if obj is not None:
                obj.release()
        self.vao = self.vbo = self.nbo = None


def run_viewer(sim: Simulation, width: int = 1000, height: int = 800, fps: int = 60) -> None:
    """Interactive loop: one simulation step per rendered frame."""
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_mode((width, height), pygame.OPENGL | pygame.DOUBLEBUF)
    pygame.display.set_caption("jellystar")
    viewer = Viewer(moderngl.create_context(), width, height)

    pitch, yaw, distance = 0.5, 0.5, 4.0

    logger.info("Controls: Space start/stop, R reset, arrows orbit, +/- zoom, Esc quit")

    running = True
    frame_count = 0
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_SPACE:
                        sim.toggle()
                    elif event.key == pygame.K_r:
                        sim.reset()

            keys = pygame.key.get_pressed()
            if keys[pygame.K_LEFT]:
                yaw -= 0.03
            if keys[pygame.K_RIGHT]:
                yaw += 0.03
            if keys[pygame.K_UP]:
                pitch -= 0.03
            if keys[pygame.K_DOWN]:
                pitch += 0.03
            if keys[pygame.K_EQUALS] or keys[pygame.K_PLUS]:
                distance = max(1.5, distance - 0.05)
            if keys[pygame.K_MINUS]:
                distance += 0.05

            viewer.upload(sim.step())
            viewer.draw(pitch, yaw, distance)
            pygame.display.flip()

            if frame_count % 30 == 0:
                pygame.display.set_caption(
                    f"jellystar - {sim.mode.value} | {clock.get_fps():.0f} FPS | "
                    f"KE {sim.kinetic_energy():.5f}"
                )

            clock.tick(fps)
            frame_count += 1
    finally:
        viewer._release()
        pygame.quit()
