from unittest import TestCase

from io import StringIO

import numpy as np

from vocam.camera_models import (CameraModel, PinholeModel, RadTanModel, EquidistantModel, ATANModel,
                                 UnsupportedJacobianError)


def num_pixel_jacobian(points, cmodel, delta=1e-6) -> np.ndarray:

    points = np.asanyarray(points, dtype=np.float64)

    columns = []

    for axis in range(points.shape[0]):
        step = np.zeros(points.shape[0])
        step[axis] = delta

        pix_f = cmodel.project(points + step)
        pix_b = cmodel.project(points - step)

        columns.append((pix_f - pix_b) / (2 * delta))

    return np.array(columns).T


def num_intrinsic_jacobian(point, cmodel, delta=1e-6) -> np.ndarray:

    columns = []

    for axis in range(cmodel.DIM):
        step = np.zeros(cmodel.DIM)
        step[axis] = delta

        model_f = cmodel.copy()
        model_f.apply_update(step)

        model_b = cmodel.copy()
        model_b.apply_update(-step)

        columns.append((model_f.project(point) - model_b.project(point)) / (2 * delta))

    return np.array(columns).T


def num_unproject_jacobian(pixel, cmodel, delta=1e-4) -> np.ndarray:

    pixel = np.asanyarray(pixel, dtype=np.float64)

    gnom_f_x = cmodel.unproject(pixel + [delta, 0], allow_interp=False)
    gnom_b_x = cmodel.unproject(pixel - [delta, 0], allow_interp=False)
    gnom_f_y = cmodel.unproject(pixel + [0, delta], allow_interp=False)
    gnom_b_y = cmodel.unproject(pixel - [0, delta], allow_interp=False)

    return np.array([(gnom_f_x - gnom_b_x) / (2 * delta),
                     (gnom_f_y - gnom_b_y) / (2 * delta)]).T


class TestPinholeModel(TestCase):

    def setUp(self):

        self.Class = PinholeModel

        self.kwargs = {}

        self.points = np.array([[0.1, -0.2, 0.05, 0.0],
                                [0.2, 0.1, -0.15, 0.0],
                                [1.0, 1.2, 0.9, 1.0]])

    def make_model(self, **kwargs) -> CameraModel:

        inputs = dict(fx=500, fy=510, cx=320, cy=240, n_rows=480, n_cols=640)
        inputs.update(self.kwargs)
        inputs.update(kwargs)

        return self.Class(**inputs)

    def test___init__(self):

        model = self.make_model()

        np.testing.assert_array_equal(model.intrinsic_matrix, [[500, 0, 320], [0, 510, 240]])
        self.assertEqual(model.n_rows, 480)
        self.assertEqual(model.n_cols, 640)
        self.assertEqual(model.distortion_coefficients.size, self.Class.DIM - 4)

        model = self.Class(intrinsic_matrix=np.array([[1, 0, 3], [0, 5, 6]]))

        np.testing.assert_array_equal(model.intrinsic_matrix, [[1, 0, 3], [0, 5, 6]])

        with self.assertRaises(ValueError):
            self.Class(distortion_coefficients=np.ones(self.Class.DIM - 3))

    def test_abstract(self):

        with self.assertRaises(TypeError):
            CameraModel()

    def test_intrinsics(self):

        model = self.make_model()

        self.assertEqual(model.intrinsics, (500.0, 510.0, 320.0, 240.0))
        self.assertEqual(model.fx, 500)
        self.assertEqual(model.fy, 510)
        self.assertEqual(model.cx, 320)
        self.assertEqual(model.cy, 240)

        model.fx = 100
        model.cy = 3

        np.testing.assert_array_equal(model.intrinsic_matrix, [[100, 0, 320], [0, 510, 3]])

    def test_intrinsic_matrix_inv(self):

        model = self.make_model()

        np.testing.assert_array_almost_equal(
            model.intrinsic_matrix @ np.vstack([model.intrinsic_matrix_inv, [0, 0, 1]]),
            [[1, 0, 0], [0, 1, 0]])

    def test_state_vector(self):

        model = self.make_model()

        self.assertEqual(len(model.state_labels), self.Class.DIM)
        self.assertEqual(model.state_labels[:4], ['fx', 'fy', 'cx', 'cy'])

        np.testing.assert_array_equal(model.state_vector,
                                      np.hstack([[500, 510, 320, 240], model.distortion_coefficients]))

    def test_apply_update(self):

        model = self.make_model()

        state = model.state_vector

        update = np.arange(1, self.Class.DIM + 1) * 1e-3

        model.apply_update(update)

        np.testing.assert_array_almost_equal(model.state_vector, state + update)

        with self.assertRaises(ValueError):
            model.apply_update(np.zeros(self.Class.DIM + 1))

        with self.assertRaises(ValueError):
            model.apply_update(np.zeros(self.Class.DIM - 1))

    def test_apply_distortion(self):

        model = self.make_model()

        np.testing.assert_array_equal(model.apply_distortion(self.points[:2]), self.points[:2])

    def test_remove_distortion(self):

        model = self.make_model()

        gnomic = self.points[:2] / self.points[2]

        np.testing.assert_allclose(model.remove_distortion(model.apply_distortion(gnomic)), gnomic, atol=1e-12)

    def test_project(self):

        model = self.make_model()

        gnomic, distorted, pixels = model.get_projections(self.points)

        np.testing.assert_allclose(gnomic, self.points[:2] / self.points[2])

        np.testing.assert_allclose(pixels, model.intrinsic_matrix[:, :2] @ distorted + model.intrinsic_matrix[:, [2]])

        np.testing.assert_allclose(model.project(self.points), pixels)

        # normalized inputs give the same pixels as the 3D points
        np.testing.assert_allclose(model.project(gnomic), pixels)

        for point, pixel in zip(self.points.T, pixels.T):
            with self.subTest(point=point):
                np.testing.assert_allclose(model.project(point), pixel)

        with self.assertRaises(ValueError):
            model.project(np.ones(4))

    def test_project_jacobian_outputs(self):

        model = self.make_model()

        pixels, point_jac = model.project(self.points, return_point_jacobian=True)

        self.assertEqual(pixels.shape, (2, 4))
        self.assertEqual(point_jac.shape, (4, 2, 3))

        pixels, intrinsic_jac = model.project(self.points, return_intrinsic_jacobian=True)

        self.assertEqual(intrinsic_jac.shape, (4, 2, self.Class.DIM))

        pixels, point_jac, intrinsic_jac = model.project(self.points[:, 0], return_point_jacobian=True,
                                                         return_intrinsic_jacobian=True)

        self.assertEqual(pixels.shape, (2,))
        self.assertEqual(point_jac.shape, (2, 3))
        self.assertEqual(intrinsic_jac.shape, (2, self.Class.DIM))

        pixels, point_jac = model.project(self.points[:2, 0], return_point_jacobian=True)

        self.assertEqual(point_jac.shape, (2, 2))

    def test_compute_pixel_jacobian(self):

        model = self.make_model()

        for point in self.points.T:

            with self.subTest(point=point):
                jac_ana = model.compute_pixel_jacobian(point)
                jac_num = num_pixel_jacobian(point, model)

                np.testing.assert_allclose(jac_ana, jac_num, rtol=1e-5, atol=1e-3)

            gnomic = point[:2] / point[2]

            with self.subTest(gnomic=gnomic):
                jac_ana = model.compute_pixel_jacobian(gnomic)
                jac_num = num_pixel_jacobian(gnomic, model)

                np.testing.assert_allclose(jac_ana, jac_num, rtol=1e-5, atol=1e-3)

        jac_multi = model.compute_pixel_jacobian(self.points)

        for ind, point in enumerate(self.points.T):
            np.testing.assert_allclose(jac_multi[ind], model.compute_pixel_jacobian(point))

    def test_compute_jacobian(self):

        model = self.make_model()

        for point in self.points.T:

            with self.subTest(point=point):
                jac_ana = model.compute_jacobian(point)
                jac_num = num_intrinsic_jacobian(point, model)

                np.testing.assert_allclose(jac_ana, jac_num, rtol=1e-5, atol=1e-3)

    def test_unproject(self):

        model = self.make_model()

        pixels = model.project(self.points)

        np.testing.assert_allclose(model.unproject(pixels), self.points[:2] / self.points[2], atol=1e-10)

        np.testing.assert_allclose(model.unproject(pixels[:, 0]), self.points[:2, 0] / self.points[2, 0],
                                   atol=1e-10)

        with self.assertRaises(UnsupportedJacobianError):
            model.unproject(pixels, return_intrinsic_jacobian=True)

        with self.assertRaises(NotImplementedError):
            model.unproject(pixels, return_pixel_jacobian=True, return_intrinsic_jacobian=True)

    def test_compute_unproject_jacobian(self):

        model = self.make_model()

        pixels = model.project(self.points)

        for pixel in pixels.T:

            with self.subTest(pixel=pixel):
                gnomic, jac_ana = model.unproject(pixel, return_pixel_jacobian=True)

                np.testing.assert_allclose(gnomic, model.unproject(pixel))

                jac_num = num_unproject_jacobian(pixel, model)

                np.testing.assert_allclose(jac_ana, jac_num, atol=1e-8)

                # the unprojection jacobian inverts the projection jacobian
                np.testing.assert_allclose(jac_ana @ model.compute_pixel_jacobian(gnomic), np.eye(2), atol=1e-8)

        _, jac_multi = model.unproject(pixels, return_pixel_jacobian=True)

        self.assertEqual(jac_multi.shape, (pixels.shape[1], 2, 2))

    def test_pixels_to_unit(self):

        model = self.make_model()

        pixels = model.project(self.points)

        unit = model.pixels_to_unit(pixels)

        np.testing.assert_allclose(np.linalg.norm(unit, axis=0), 1)

        np.testing.assert_allclose(unit, self.points / np.linalg.norm(self.points, axis=0), atol=1e-10)

        np.testing.assert_allclose(model.pixels_to_unit(pixels[:, 1]), unit[:, 1])

    def test_prepare_interp(self):

        model = self.make_model(fx=50, fy=50, cx=32, cy=24, n_rows=48, n_cols=64)

        pixels = np.array([[10.3, 32, 50.5, 3],
                           [20.7, 24, 7.25, 40]])

        with self.assertRaises(ValueError):
            model.pixels_to_gnomic_interp(pixels)

        model.prepare_interp(pixel_bounds=5)

        np.testing.assert_allclose(model.pixels_to_gnomic_interp(pixels),
                                   model.unproject(pixels, allow_interp=False), atol=5e-4)

        np.testing.assert_allclose(model.unproject(pixels[:, 0]),
                                   model.unproject(pixels[:, 0], allow_interp=False), atol=5e-4)

        model.apply_update(np.zeros(self.Class.DIM))

        with self.assertRaises(ValueError):
            model.pixels_to_gnomic_interp(pixels)

        model = self.make_model(fx=100, fy=100, cx=0, cy=0, n_rows=1, n_cols=1)

        with self.assertWarns(UserWarning):
            model.prepare_interp(pixel_bounds=2)

    def test___eq__(self):

        model = self.make_model()

        self.assertEqual(model, model.copy())
        self.assertEqual(model, self.make_model())

        other = model.copy()
        other.apply_update(np.ones(self.Class.DIM))

        self.assertNotEqual(model, other)
        self.assertNotEqual(model, 'model')

    def test_copy(self):

        model = self.make_model()

        model_copy = model.copy()

        model_copy.fx = 1

        self.assertEqual(model.fx, 500)
        self.assertIsNot(model.intrinsic_matrix, model_copy.intrinsic_matrix)

    def test___str__(self):

        model = self.make_model()

        description = str(model)

        self.assertIn('camera parameters', description)
        self.assertIn('fx=500.0', description)
        self.assertIn('cy=240.0', description)

        for label in model.distortion_labels:
            self.assertIn('{}='.format(label), description)

        self.assertIn(self.Class.__name__, repr(model))

    def test_print_model(self):

        model = self.make_model()

        out = StringIO()

        model.print_model(out)

        self.assertEqual(out.getvalue(), str(model))


class TestRadTanModel(TestPinholeModel):

    def setUp(self):

        super().setUp()

        self.Class = RadTanModel

        self.kwargs = dict(k1=-0.1, k2=0.02, p1=1e-3, p2=-2e-3, k3=0.001)

    def test___init__(self):

        super().test___init__()

        model = self.make_model()

        self.assertEqual(model.k1, -0.1)
        self.assertEqual(model.k2, 0.02)
        self.assertEqual(model.p1, 1e-3)
        self.assertEqual(model.p2, -2e-3)
        self.assertEqual(model.k3, 0.001)

        np.testing.assert_array_equal(model.distortion_coefficients, [-0.1, 0.02, 1e-3, -2e-3, 0.001])

        model = self.Class(distortion_coefficients=[1, 2, 3, 4, 5], k3=10)

        np.testing.assert_array_equal(model.distortion_coefficients, [1, 2, 3, 4, 10])

    def test_apply_distortion(self):

        model = self.make_model()

        for gnomic in self.points[:2].T:

            with self.subTest(gnomic=gnomic):
                x, y = gnomic
                r2 = x * x + y * y

                radial = 1 + model.k1 * r2 + model.k2 * r2 ** 2 + model.k3 * r2 ** 3

                expected = [radial * x + 2 * model.p1 * x * y + model.p2 * (r2 + 2 * x * x),
                            radial * y + model.p1 * (r2 + 2 * y * y) + 2 * model.p2 * x * y]

                np.testing.assert_allclose(model.apply_distortion(gnomic), expected)

        model = self.Class()

        np.testing.assert_array_equal(model.apply_distortion(self.points[:2]), self.points[:2])


class TestEquidistantModel(TestPinholeModel):

    def setUp(self):

        super().setUp()

        self.Class = EquidistantModel

        self.kwargs = dict(k1=0.01, k2=-0.005, k3=0.001, k4=-0.0005)

    def test___init__(self):

        super().test___init__()

        model = self.make_model()

        np.testing.assert_array_equal(model.distortion_coefficients, [0.01, -0.005, 0.001, -0.0005])
        self.assertEqual(model.max_iterations, 20)

    def test_apply_distortion(self):

        model = self.make_model()

        gnomic = np.array([0.3, 0.4])

        theta = np.arctan(0.5)

        theta_d = theta * (1 + model.k1 * theta ** 2 + model.k2 * theta ** 4 + model.k3 * theta ** 6 +
                           model.k4 * theta ** 8)

        np.testing.assert_allclose(model.apply_distortion(gnomic), theta_d / 0.5 * gnomic)

        # on the optical axis the distortion is the identity
        np.testing.assert_array_equal(model.apply_distortion([0, 0]), [0, 0])

        # with no coefficients this is the pure equidistant projection
        model = self.Class()

        np.testing.assert_allclose(model.apply_distortion(gnomic), theta / 0.5 * gnomic)

    def test_remove_distortion_wide_angle(self):

        model = self.make_model()

        # 70 degrees off of the optical axis
        gnomic = np.tan(np.deg2rad(70)) * np.array([[0.6, -1.0], [0.8, 0.0]])

        np.testing.assert_allclose(model.remove_distortion(model.apply_distortion(gnomic)), gnomic, rtol=1e-10)


class TestATANModel(TestPinholeModel):

    def setUp(self):

        super().setUp()

        self.Class = ATANModel

        self.kwargs = dict(w=0.9)

    def test___init__(self):

        super().test___init__()

        model = self.make_model()

        self.assertEqual(model.w, 0.9)
        np.testing.assert_array_equal(model.distortion_coefficients, [0.9])

    def test_apply_distortion(self):

        model = self.make_model()

        gnomic = np.array([0.3, 0.4])

        expected = np.arctan(2 * 0.5 * np.tan(0.45)) / (0.9 * 0.5) * gnomic

        np.testing.assert_allclose(model.apply_distortion(gnomic), expected)

        np.testing.assert_allclose(model.apply_distortion([0, 0]), [0, 0])

        # w of zero is the pinhole model
        model = self.Class()

        np.testing.assert_array_equal(model.apply_distortion(self.points[:2]), self.points[:2])

        np.testing.assert_array_equal(model.remove_distortion(self.points[:2]), self.points[:2])

        np.testing.assert_array_equal(model.compute_jacobian(self.points[:, 0])[:, 4], [0, 0])

    def test_remove_distortion_closed_form(self):

        model = self.make_model()

        distorted = np.array([0.3, 0.4])

        expected = np.tan(0.5 * 0.9) / (2 * np.tan(0.45) * 0.5) * distorted

        np.testing.assert_allclose(model.remove_distortion(distorted), expected)
