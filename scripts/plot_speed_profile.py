#!/usr/bin/env python3
"""
Plot the smoothed wrist speed of a recorded hand animation.

Loads a serialized recording, optionally compresses it, builds the timeline
and writes a per-sample CSV (time, tracked flag, wrist position, speed per
hand) plus a speed plot for both hands.
"""

import argparse
import os

import matplotlib.pyplot as plt
import pandas as pd

from handguide.anim.models import Handedness, JointId
from handguide.anim.serialization import load
from handguide.anim.timeline import Timeline


def timeline_frame(timeline: Timeline) -> pd.DataFrame:
    rows = []
    for s in timeline:
        row = {"t": s.time}
        for hand in Handedness:
            hs = s.hand(hand)
            wrist = hs.pose(JointId.WRIST)
            x, y, z = wrist.position if wrist is not None else (float("nan"),) * 3
            row.update({
                f"{hand.value}_tracked": hs.tracked,
                f"{hand.value}_x": x,
                f"{hand.value}_y": y,
                f"{hand.value}_z": z,
                f"{hand.value}_speed": hs.speed,
            })
        rows.append(row)
    return pd.DataFrame(rows)


def plot_speeds(df: pd.DataFrame, title: str, out_path: str):
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
    for ax, hand, color in ((ax1, "left", "blue"), (ax2, "right", "red")):
        ax.plot(df["t"], df[f"{hand}_speed"], color=color, linewidth=1, label=f"{hand} wrist")
        untracked = df[~df[f"{hand}_tracked"]]
        if len(untracked):
            ax.scatter(untracked["t"], untracked[f"{hand}_speed"], color="gray", s=4, label="untracked")
        ax.set_ylabel("Speed (m/s)")
        ax.grid(True)
        ax.legend()
    ax1.set_title(title)
    ax2.set_xlabel("Time (s)")
    plt.savefig(out_path)
    plt.close(fig)
    print(f"Saved {out_path}")


def main():
    parser = argparse.ArgumentParser(description="Export and plot the wrist speed profile of a hand recording.")
    parser.add_argument("recording", help="serialized recording (.txt)")
    parser.add_argument("--output", default="speed_profile")
    parser.add_argument("--compress", action="store_true", help="compress before building the timeline")
    parser.add_argument("--pos-threshold", type=float, default=0.001)
    parser.add_argument("--rot-threshold", type=float, default=0.5)
    args = parser.parse_args()

    doc = load(args.recording)
    if args.compress:
        before = doc.key_count
        doc = doc.compress(args.pos_threshold, args.rot_threshold)
        print(f"Compressed {before} -> {doc.key_count} keys")

    timeline = Timeline.from_document(doc)
    df = timeline_frame(timeline)

    os.makedirs(args.output, exist_ok=True)
    csv_path = os.path.join(args.output, f"{doc.description}_speed.csv")
    df.to_csv(csv_path, index=False)
    print(f"Saved {csv_path} ({len(df)} samples)")

    plot_speeds(df, f"Wrist speed: {doc.description}", os.path.join(args.output, f"{doc.description}_speed.png"))


if __name__ == "__main__":
    main()
