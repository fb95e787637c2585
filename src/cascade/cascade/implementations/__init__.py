# ABOUTME: Implementations package for the cascade kernel
# ABOUTME: Concrete pipelines and transports behind the abstract interfaces
