"""wap-bot - A Slack bot that summarizes the music links shared in a thread.

Mention the bot with "summarize" inside a thread and it replies with a CSV
listing every Spotify / YouTube / YouTube Music track found in the thread.

Components:
- main_socket: Socket Mode entry point
- slack: event source, dispatcher and Web API wrapper
- extractors: provider URL matchers and title resolvers
- pipeline: thread summarizer (CSV builder)
- mlops: MLflow tracing
"""
