from diffreduce.core.ports.clock import Clock
from diffreduce.core.ports.feedback import FeedbackSink
from diffreduce.core.ports.logger import Logger
from diffreduce.core.ports.noise_filter import NoiseFilter
from diffreduce.core.ports.summary_generator import SummaryGenerator

__all__ = [
    "Logger",
    "Clock",
    "SummaryGenerator",
    "NoiseFilter",
    "FeedbackSink",
]
