# eco_sim/ui/app.py
from __future__ import annotations
import logging
import pygame
from .renderer import Renderer, BG_COLOR
from .csv_writer import DailyCsvLogger
from ..sim.config import DEFAULT_CONFIG, SimConfig
from ..sim.engine import SimulationEngine
from ..sim.metrics import PopulationHistory, summarize

logger = logging.getLogger(__name__)

TICK_DT = 1.0 / 60.0

def run_ui(config: SimConfig = DEFAULT_CONFIG, seed=None, csv_logging: bool = True):
    pygame.init()
    pygame.display.set_caption("Ecosystem: predators, prey and resources")
    W, H = 1280, 720
    screen = pygame.display.set_mode((W, H), pygame.RESIZABLE | pygame.SCALED)
    clock = pygame.time.Clock()

    def layout():
        w, h = screen.get_size()
        panel_w = int(w * 0.28)
        world_rect = pygame.Rect(10, 10, w - panel_w - 30, h - 20)
        panel_rect = pygame.Rect(w - panel_w - 10, 120, panel_w, h - 130)
        return world_rect, panel_rect

    world_rect, panel_rect = layout()
    world_size = (config.world.width, config.world.height)
    renderer = Renderer(screen, world_rect, panel_rect, world_size)

    engine = SimulationEngine(config, seed=seed)
    engine.initialize()
    engine.start()
    history = PopulationHistory(maxlen=2000)
    daily = DailyCsvLogger() if csv_logging else None

    sim_speed = 1  # ticks/frame
    last_day = engine.get_days()
    running = True

    while running:
        clock.tick(60)

        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                running = False
            elif e.type == pygame.VIDEORESIZE:
                screen = pygame.display.set_mode(e.size, pygame.RESIZABLE | pygame.SCALED)
                world_rect, panel_rect = layout()
                renderer.screen = screen
                renderer.resize(world_rect, panel_rect)
            elif e.type == pygame.KEYDOWN:
                if e.key == pygame.K_ESCAPE: running = False
                elif e.key == pygame.K_SPACE:
                    if engine.is_running:
                        engine.pause()
                    else:
                        engine.start()
                elif e.key == pygame.K_r:
                    engine.reset()
                    history = PopulationHistory(maxlen=2000)
                    last_day = engine.get_days()
                elif e.key == pygame.K_p: engine.spawn_prey(10)
                elif e.key == pygame.K_o: engine.spawn_predators(5)
                elif e.key == pygame.K_f: engine.spawn_resources(20)
                elif e.key == pygame.K_LEFTBRACKET:
                    sim_speed = max(1, sim_speed - 1)
                elif e.key == pygame.K_RIGHTBRACKET:
                    sim_speed = min(40, sim_speed + 1)
                elif e.key == pygame.K_g:
                    renderer.glyph_mode = "plain" if renderer.glyph_mode == "rings" else "rings"
                elif e.key == pygame.K_l:
                    renderer.show_legend = not renderer.show_legend

        for _ in range(sim_speed):
            engine.update(TICK_DT)
            if engine.get_days() != last_day:
                last_day = engine.get_days()
                row = summarize(engine)
                history.append(row)
                print(f"Day {row['day']:4d} | prey={row['prey']:4d} predators={row['predators']:3d} "
                      f"resources={row['resources']:4d}")
                if daily is not None:
                    daily.append_day(engine)

        screen.fill(BG_COLOR)
        renderer.draw_world(engine.get_all_entities(), engine.is_resource_bloom())
        renderer.draw_hud(engine, sim_speed, not engine.is_running)
        renderer.draw_panel(engine, history)
        pygame.display.flip()

    if daily is not None:
        logger.info("UI session %s closed on day %d", daily.session_id, engine.get_days())
    pygame.quit()
