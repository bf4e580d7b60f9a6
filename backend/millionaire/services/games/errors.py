class GameError(Exception):
    pass


class GameInProgressError(GameError):
    def __init__(self, game):
        super().__init__(f"user already has game #{game.id} in progress")
        self.game = game


class NotEnoughQuestionsError(GameError):
    def __init__(self, level):
        super().__init__(f"no questions available for level {level}")
        self.level = level


class GameFinishedError(GameError):
    pass


class UnknownHelpTypeError(GameError):
    pass
