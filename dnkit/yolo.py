"""Decoding grid detector output into boxes and class scores, and writing them out."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

VOC_NAMES = (
    "aeroplane", "bicycle", "bird", "boat", "bottle", "bus", "car", "cat",
    "chair", "cow", "diningtable", "dog", "horse", "motorbike", "person",
    "pottedplant", "sheep", "sofa", "train", "tvmonitor",
)


@dataclass
class Box:
    """A box given by its centre and its width and height."""

    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0


def convert_yolo_detections(
    predictions: Sequence[float],
    classes: int,
    num: int,
    square: bool,
    side: int,
    w: float,
    h: float,
    thresh: float,
    only_objectness: bool = False,
) -> Tuple[List[Box], List[List[float]]]:
    """Turn raw grid predictions into ``side*side*num`` boxes and class scores.

    The predictions hold, in order, the class probabilities of every cell,
    the objectness scale of every box and the four coordinates of every box.
    A class score is the scale times the cell's class probability, or zero
    when it does not exceed ``thresh``. With ``only_objectness`` the first
    score of each box is replaced by its scale.
    """
    cells = side * side
    needed = cells * (classes + num * 5)
    if len(predictions) < needed:
        raise ValueError(f"expected at least {needed} predictions, got {len(predictions)}")
    power = 2 if square else 1
    boxes: List[Box] = []
    probs: List[List[float]] = []
    for cell in range(cells):
        row, col = divmod(cell, side)
        class_base = cell * classes
        for n in range(num):
            index = cell * num + n
            scale = float(predictions[cells * classes + index])
            box_index = cells * (classes + num) + index * 4
            boxes.append(
                Box(
                    x=(float(predictions[box_index]) + col) / side * w,
                    y=(float(predictions[box_index + 1]) + row) / side * h,
                    w=float(predictions[box_index + 2]) ** power * w,
                    h=float(predictions[box_index + 3]) ** power * h,
                )
            )
            scores = []
            for j in range(classes):
                prob = scale * float(predictions[class_base + j])
                scores.append(prob if prob > thresh else 0.0)
            if only_objectness and scores:
                scores[0] = scale
            probs.append(scores)
    return boxes, probs


def format_yolo_detections(
    image_id: str,
    boxes: Sequence[Box],
    probs: Sequence[Sequence[float]],
    classes: int,
    w: float,
    h: float,
) -> List[List[str]]:
    """Result lines per class: ``id score xmin ymin xmax ymax`` for every non-zero score.

    Box corners are clamped to the image of ``w`` by ``h``.
    """
    if len(boxes) != len(probs):
        raise ValueError(f"{len(boxes)} boxes but {len(probs)} score rows")
    lines: List[List[str]] = [[] for _ in range(classes)]
    for box, scores in zip(boxes, probs):
        xmin = max(box.x - box.w / 2.0, 0.0)
        xmax = min(box.x + box.w / 2.0, float(w))
        ymin = max(box.y - box.h / 2.0, 0.0)
        ymax = min(box.y + box.h / 2.0, float(h))
        for j in range(classes):
            score = scores[j]
            if score:
                lines[j].append(
                    f"{image_id} {score:f} {xmin:f} {ymin:f} {xmax:f} {ymax:f}"
                )
    return lines