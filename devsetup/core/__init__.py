"""Core setup engine: context, detection, policy, retries, pipeline."""
