"""
Achievement progression: frontier visibility, skill-tree layout, points.

Achievements form a forest through prerequisite_id. A user sees every
achievement they unlocked, every root achievement, and every achievement
whose direct prerequisite they unlocked. Deeper locked descendants stay
hidden until their own parent unlocks.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from hub.levels import DEFAULT_LEVEL_POLICY, Level, LevelPolicy

logger = logging.getLogger(__name__)

# Skill-tree canvas geometry
TREE_CENTER = (400, 500)
LAYER_RADII = [0, 120, 200, 280, 360]
NODES_PER_LAYER = 6

EMPTY_MESSAGE = "No achievements available yet. Check back soon!"


@dataclass
class SkillNode:
    id: str
    x: float
    y: float
    achievement: dict
    progress: Optional[dict]
    connections: List[str] = field(default_factory=list)

    @property
    def unlocked(self) -> bool:
        return is_unlocked(self.progress)

    @property
    def progress_percent(self) -> float:
        return progress_percent(self.achievement, self.progress)


@dataclass
class SkillEdge:
    source: str
    target: str
    x1: float
    y1: float
    x2: float
    y2: float
    solid: bool


@dataclass
class AchievementSummary:
    nodes: List[SkillNode]
    edges: List[SkillEdge]
    total_points: int
    unlocked_count: int
    catalog_count: int
    level: Level

    @property
    def is_empty(self) -> bool:
        return self.catalog_count == 0


def is_unlocked(progress: Optional[dict]) -> bool:
    return bool(progress and progress.get('unlocked'))


def index_progress(progress_rows: Optional[List[dict]]) -> Dict[str, dict]:
    """Progress rows keyed by achievement id."""
    return {row['achievement_id']: row for row in (progress_rows or [])}


def is_visible(achievement: dict, progress_by_id: Dict[str, dict]) -> bool:
    """Frontier visibility of a single achievement."""
    if is_unlocked(progress_by_id.get(achievement['id'])):
        return True
    prerequisite_id = achievement.get('prerequisite_id')
    if not prerequisite_id:
        return True
    return is_unlocked(progress_by_id.get(prerequisite_id))


def visible_achievements(catalog: Optional[List[dict]], progress_rows: Optional[List[dict]]) -> List[dict]:
    """Visible achievements, in catalog order."""
    progress_by_id = index_progress(progress_rows)
    return [a for a in (catalog or []) if is_visible(a, progress_by_id)]


def progress_percent(achievement: dict, progress: Optional[dict]) -> float:
    """Share of required_count reached, within 0..100."""
    required = achievement.get('required_count') or 1
    if required <= 0:
        required = 1
    current = (progress or {}).get('progress') or 0
    return max(0.0, min(100.0, current / required * 100))


def layout_skill_tree(visible: List[dict], progress_rows: Optional[List[dict]] = None) -> List[SkillNode]:
    """
    Place visible achievements on concentric rings around TREE_CENTER.
    Six nodes per ring, ring radius grows with the ring index.
    """
    progress_by_id = index_progress(progress_rows)
    center_x, center_y = TREE_CENTER
    total = len(visible)
    nodes = []
    for index, achievement in enumerate(visible):
        layer = index // NODES_PER_LAYER + 1
        position = index % NODES_PER_LAYER
        angle_step = (math.pi * 2) / max(NODES_PER_LAYER, total / layer)
        angle = angle_step * position - math.pi / 2
        radius = LAYER_RADII[min(layer, len(LAYER_RADII) - 1)]

        prerequisite_id = achievement.get('prerequisite_id')
        nodes.append(SkillNode(
            id=achievement['id'],
            x=center_x + math.cos(angle) * radius,
            y=center_y + math.sin(angle) * radius,
            achievement=achievement,
            progress=progress_by_id.get(achievement['id']),
            connections=[prerequisite_id] if prerequisite_id else [],
        ))
    return nodes


def tree_edges(nodes: List[SkillNode]) -> List[SkillEdge]:
    """Edges from each node to its prerequisite when both are on the tree."""
    by_id = {node.id: node for node in nodes}
    edges = []
    for node in nodes:
        for target_id in node.connections:
            target = by_id.get(target_id)
            if target is None:
                continue
            edges.append(SkillEdge(
                source=node.id,
                target=target.id,
                x1=node.x,
                y1=node.y,
                x2=target.x,
                y2=target.y,
                solid=node.unlocked,
            ))
    return edges


def total_points(catalog: Optional[List[dict]], progress_rows: Optional[List[dict]]) -> int:
    """Sum of points over every achievement the user unlocked."""
    progress_by_id = index_progress(progress_rows)
    return sum(
        a.get('points') or 0
        for a in (catalog or [])
        if is_unlocked(progress_by_id.get(a['id']))
    )


def summarize(catalog: Optional[List[dict]], progress_rows: Optional[List[dict]],
              policy: LevelPolicy = DEFAULT_LEVEL_POLICY) -> AchievementSummary:
    """Everything the achievements page renders, derived from two fetches."""
    catalog = catalog or []
    progress_rows = progress_rows or []
    nodes = layout_skill_tree(visible_achievements(catalog, progress_rows), progress_rows)
    points = total_points(catalog, progress_rows)
    catalog_ids = {a['id'] for a in catalog}
    unlocked_count = sum(
        1 for row in progress_rows
        if is_unlocked(row) and row['achievement_id'] in catalog_ids
    )
    return AchievementSummary(
        nodes=nodes,
        edges=tree_edges(nodes),
        total_points=points,
        unlocked_count=unlocked_count,
        catalog_count=len(catalog),
        level=policy.level_for(points),
    )


def load_catalog(store) -> List[dict]:
    """Full catalog, highest points first."""
    return store.select('achievements', order_by='points', descending=True)


def load_progress(store, user_id: str) -> List[dict]:
    return store.select('user_achievements', {'user_id': user_id})


def load_summary(store, user_id: str, policy: LevelPolicy = DEFAULT_LEVEL_POLICY) -> AchievementSummary:
    """Fetch catalog and progress for a user and summarize. Raises StoreError."""
    return summarize(load_catalog(store), load_progress(store, user_id), policy)


def record_progress(store, user_id: str, achievement_id: str, amount: int = 1) -> dict:
    """
    Add progress towards an achievement, unlocking it once required_count
    is reached. Unlocked rows are returned unchanged. Used by
    scripts/award_achievement.py.
    """
    if amount < 0:
        raise ValueError("Progress can only increase")

    achievement = store.get('achievements', achievement_id)
    if achievement is None:
        raise ValueError(f"Unknown achievement '{achievement_id}'")
    required = achievement.get('required_count') or 1

    rows = store.select('user_achievements', {'user_id': user_id, 'achievement_id': achievement_id})
    row = rows[0] if rows else None
    if row and row.get('unlocked'):
        return row

    current = (row.get('progress') or 0) if row else 0
    progress = current + amount
    values = {'progress': progress}
    if progress >= required:
        values['unlocked'] = 1
        values['unlocked_at'] = datetime.now().isoformat(timespec='seconds')
        logger.info("User %s unlocked achievement %s", user_id, achievement_id)

    if row:
        store.update('user_achievements', values, {'id': row['id']})
        row.update(values)
        return row
    values.setdefault('unlocked', 0)
    return store.insert('user_achievements', dict(values, user_id=user_id, achievement_id=achievement_id))[0]
