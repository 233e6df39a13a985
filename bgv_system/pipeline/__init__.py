"""Inbound reply pipeline: mailbox poll to recorded HR replies."""

from bgv_system.pipeline.reply_pipeline import PollReport, ReplyPipeline

__all__ = ["PollReport", "ReplyPipeline"]
