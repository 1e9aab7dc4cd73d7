"""
The CONTROLLER layer drives an experiment: the run state machine, the
frame scheduler and the session object the views talk to.
"""
