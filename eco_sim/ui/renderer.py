# eco_sim/ui/renderer.py
from __future__ import annotations
import math, pygame
from typing import Sequence
from ..sim.models import EntityKind, EntitySnapshot

# ---------- Colors / Theme ----------
BG_COLOR     = (14,16,20)
GRID_COLOR   = (35,40,48)
PANEL_BG     = (10,12,16)

TOPBAR_BG    = (24,26,32)
TOPBAR_LINE  = (54,58,66)

RESOURCE_COLOR = (60,200,90)
BLOOM_COLOR    = (230,210,80)

# outer ring per species
KIND_COLORS = {
    EntityKind.PREY:     (60, 140, 240),  # blue
    EntityKind.PREDATOR: (220, 60, 60),   # red
}

# Trait gradients (low -> high)
STEALTH_LOW,  STEALTH_HIGH  = (200, 200, 200), (70, 40, 120)    # pale -> deep purple
STRENGTH_LOW, STRENGTH_HIGH = (50, 200, 180),  (240, 140, 40)   # teal -> orange
ENERGY_LOW,   ENERGY_HIGH   = (120, 30, 30),   (90, 220, 120)   # dark red -> green

# ---------- Layout knobs ----------
TOPBAR_HEIGHT    = 100
HUD_PAD_X        = 12
HUD_PAD_Y        = 10
PANEL_PADDING    = 12
SECTION_GAP      = 10

def _clamp01(x: float) -> float:
    return 0.0 if x < 0 else (1.0 if x > 1.0 else x)

def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t

def _col_lerp(c0, c1, t):
    t = _clamp01(t)
    return (int(_lerp(c0[0], c1[0], t)),
            int(_lerp(c0[1], c1[1], t)),
            int(_lerp(c0[2], c1[2], t)))

class Renderer:
    """Draws engine snapshots. Never touches live entities."""
    def __init__(self, screen, world_rect: pygame.Rect, panel_rect: pygame.Rect,
                 world_size, font_name="Menlo"):
        self.screen = screen
        self.world_w, self.world_h = world_size
        self.topbar_height = TOPBAR_HEIGHT
        self.font = pygame.font.SysFont(font_name, 14)
        self.bigfont = pygame.font.SysFont(font_name, 18, bold=True)
        self.glyph_mode = "rings"   # "rings" | "plain"
        self.show_legend = True
        self.resize(world_rect, panel_rect)

    def resize(self, world_rect: pygame.Rect, panel_rect: pygame.Rect):
        self.panel_rect_outer = panel_rect
        self.panel_content = self.panel_rect_outer.inflate(-2*PANEL_PADDING, -2*PANEL_PADDING)
        self.world_rect = pygame.Rect(
            world_rect.x,
            world_rect.y + self.topbar_height,
            world_rect.w,
            max(0, world_rect.h - self.topbar_height)
        )

    # ---------- coordinate helpers ----------
    def world_to_screen(self, x, y):
        rx, ry, rw, rh = self.world_rect
        sx = rx + (x / self.world_w) * rw
        sy = ry + (y / self.world_h) * rh
        return int(sx), int(sy)

    def _draw_topbar(self):
        scr = self.screen.get_rect()
        bar = pygame.Rect(0, 0, scr.w, self.topbar_height)
        pygame.draw.rect(self.screen, TOPBAR_BG, bar)
        pygame.draw.line(self.screen, TOPBAR_LINE, (0, self.topbar_height), (scr.w, self.topbar_height), 1)

    def _draw_grid(self, spacing=50.0):
        rx, ry, rw, rh = self.world_rect
        for k in range(int(self.world_w // spacing) + 1):
            sx, _ = self.world_to_screen(k * spacing, 0)
            pygame.draw.line(self.screen, GRID_COLOR, (sx, ry), (sx, ry+rh), 1)
        for k in range(int(self.world_h // spacing) + 1):
            _, sy = self.world_to_screen(0, k * spacing)
            pygame.draw.line(self.screen, GRID_COLOR, (rx, sy), (rx+rw, sy), 1)
        pygame.draw.rect(self.screen, (70,75,85), self.world_rect, 2)

    # ---------- creature drawing ----------
    def _draw_creature(self, s: EntitySnapshot):
        """
        One creature:
         - species ring (outer)
         - energy fill
         - strength / stealth bands (rings mode)
         - heading tick
        """
        sx, sy = self.world_to_screen(s.x, s.y)
        base_r = 7 if s.kind is EntityKind.PREDATOR else 5
        ring_col = KIND_COLORS[s.kind]
        ratio = s.energy / s.max_energy if s.max_energy > 0 else 0.0

        pygame.draw.circle(self.screen, _col_lerp(ENERGY_LOW, ENERGY_HIGH, ratio), (sx, sy), base_r)
        ring_thick = max(2, base_r // 3)
        pygame.draw.circle(self.screen, ring_col, (sx, sy), base_r, ring_thick)

        inner_r = base_r - ring_thick
        if self.glyph_mode == "rings" and inner_r > 1:
            pygame.draw.circle(self.screen, _col_lerp(STRENGTH_LOW, STRENGTH_HIGH, s.strength), (sx, sy), inner_r, 1)
            pygame.draw.circle(self.screen, _col_lerp(STEALTH_LOW, STEALTH_HIGH, s.stealth), (sx, sy), max(1, inner_r - 2))

        speed = math.hypot(s.vx, s.vy)
        if speed > 1e-9:
            tip = (int(sx + s.vx / speed * (base_r + 4)), int(sy + s.vy / speed * (base_r + 4)))
            pygame.draw.line(self.screen, ring_col, (sx, sy), tip, 1)

    def _draw_legend(self):
        pad = 8
        w, h = 230, 118
        lx = self.world_rect.x + pad
        ly = self.world_rect.bottom - h - pad
        rect = pygame.Rect(lx, ly, w, h)
        pygame.draw.rect(self.screen, (18,20,24), rect)
        pygame.draw.rect(self.screen, (80,85,95), rect, 1)

        y = ly + 6
        self.screen.blit(self.bigfont.render("Legend", True, (230,230,235)), (lx+6, y))
        y += 22

        def row(label, color):
            nonlocal y
            pygame.draw.rect(self.screen, color, (lx + 8, y + 3, 16, 10))
            self.screen.blit(self.font.render(label, True, (210,210,220)), (lx+30, y))
            y += 16

        row("Prey (outer ring)", KIND_COLORS[EntityKind.PREY])
        row("Predator (outer ring)", KIND_COLORS[EntityKind.PREDATOR])
        row("Resource", RESOURCE_COLOR)
        row("Fill = energy", ENERGY_HIGH)
        self.screen.blit(self.font.render(f"Glyph: {self.glyph_mode} (G)", True, (210,210,220)), (lx+8, y))

    def draw_world(self, snapshots: Sequence[EntitySnapshot], bloom: bool):
        self._draw_topbar()
        self._draw_grid()
        food_col = BLOOM_COLOR if bloom else RESOURCE_COLOR
        for s in snapshots:
            if s.kind is EntityKind.RESOURCE:
                pygame.draw.circle(self.screen, food_col, self.world_to_screen(s.x, s.y), 2)
        for s in snapshots:
            if s.kind is not EntityKind.RESOURCE:
                self._draw_creature(s)
        if self.show_legend:
            self._draw_legend()

    # ---------- stats panel ----------
    def _trait_bars(self, x, y, w, label, attrs, color):
        self.screen.blit(self.bigfont.render(label, True, color), (x, y))
        y += 24
        for name, v in attrs.items():
            self.screen.blit(self.font.render(f"{name:<12} {v:.2f}", True, (190,195,205)), (x, y))
            bar = pygame.Rect(x + 140, y + 4, int((w - 150) * _clamp01(v)), 8)
            pygame.draw.rect(self.screen, color, bar)
            y += 18
        return y + SECTION_GAP

    def draw_panel(self, engine, history):
        pr = self.panel_rect_outer
        pc = self.panel_content
        pygame.draw.rect(self.screen, PANEL_BG, pr)
        pygame.draw.rect(self.screen, (70,75,85), pr, 2)

        stats = engine.get_stats()
        y = self._trait_bars(pc.x, pc.y, pc.w, f"Prey  {stats['prey_count']}",
                             stats["prey_attributes"], KIND_COLORS[EntityKind.PREY])
        y = self._trait_bars(pc.x, y, pc.w, f"Predators  {stats['predator_count']}",
                             stats["predator_attributes"], KIND_COLORS[EntityKind.PREDATOR])

        # population sparkline
        box = pygame.Rect(pc.x, y, pc.w, max(60, pc.bottom - y - 80))
        pygame.draw.rect(self.screen, (25,30,36), box)
        data = history.as_arrays()
        if data and len(data["day"]) > 1:
            top = max(1.0, float(max(data["prey"].max(), data["predators"].max())))
            n = len(data["day"])
            for key, kind in (("prey", EntityKind.PREY), ("predators", EntityKind.PREDATOR)):
                pts = [(box.x + int(i * (box.w - 1) / (n - 1)),
                        box.bottom - 1 - int(v / top * (box.h - 2)))
                       for i, v in enumerate(data[key])]
                pygame.draw.lines(self.screen, KIND_COLORS[kind], False, pts, 1)

        y = box.bottom + SECTION_GAP
        for ev in engine.get_extinction_events()[-3:]:
            msg = f"{ev.kind} extinct on day {ev.day}"
            self.screen.blit(self.font.render(msg, True, (220,80,80)), (pc.x, y))
            y += 18

    def draw_hud(self, engine, sim_speed, paused):
        counts = engine.get_stats()
        repro = engine.get_reproduction_stats()
        lines = [
            f"Day: {engine.get_days()} Frame: {engine.frame_count}/{engine.cfg.world.frames_per_day}"
            f"   {'BLOOM' if engine.is_resource_bloom() else ''}",
            f"Prey: {counts['prey_count']} (ready {repro['prey']['ready']})   "
            f"Predators: {counts['predator_count']} (ready {repro['predator']['ready']})   "
            f"Resources: {counts['resource_count']}",
            f"Sim speed: {sim_speed} ticks/frame  {'PAUSED' if paused else ''}",
            "Controls:",
            " Space Pause   R Reset   P +prey   O +predators   F +resources   [ ] SimSpeed",
            " G toggle glyph   L toggle legend   Esc quit",
        ]
        x = HUD_PAD_X
        y = HUD_PAD_Y
        for i, s in enumerate(lines):
            col = (225,225,235) if i < 3 else (170,175,185)
            self.screen.blit(self.font.render(s, True, col), (x, y))
            y += 16
