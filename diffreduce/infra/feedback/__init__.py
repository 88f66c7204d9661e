from diffreduce.infra.feedback.logger import LoggerFeedback, filter_status_message

__all__ = ["LoggerFeedback", "filter_status_message"]
